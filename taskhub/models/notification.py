# taskhub/models/notification.py
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, Enum, JSON
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from taskhub.database import Base
import enum

class NotificationCategory(str, enum.Enum):
    CHAT = "chat"
    TASK_EDIT = "task_edit"
    TEAM_CHANGE = "team_change"
    STATUS_CHANGE = "status_change"
    ASSIGNMENT = "assignment"

class NotificationPriority(str, enum.Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"

# Watchlist grants may name a category or this wildcard
ALL_TYPES = "all"

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=True)
    message = Column(Text, nullable=False)

    # `type` mirrors `category`; filters only ever look at `category`
    type = Column(String(50), nullable=False, default=NotificationCategory.ASSIGNMENT.value)
    category = Column(
        Enum(NotificationCategory, values_callable=lambda e: [m.value for m in e], native_enum=False),
        nullable=False,
        default=NotificationCategory.ASSIGNMENT,
        index=True,
    )
    priority = Column(
        Enum(NotificationPriority, values_callable=lambda e: [m.value for m in e], native_enum=False),
        nullable=False,
        default=NotificationPriority.PRIMARY,
    )

    # chatName, teamName, changeType, affectedUser
    meta = Column("metadata", JSON, nullable=False, default=dict)

    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False, index=True)

    # Relationships
    recipient = relationship("User", foreign_keys=[recipient_id], back_populates="notifications")
    sender = relationship("User", foreign_keys=[sender_id])
    task = relationship("Task")

    def __repr__(self):
        return f"<Notification(id={self.id}, recipient_id={self.recipient_id}, category='{self.category}')>"
