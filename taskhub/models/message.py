# taskhub/models/message.py
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from taskhub.database import Base

class TeamMessage(Base):
    __tablename__ = "team_messages"

    id = Column(Integer, primary_key=True, index=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    message = Column(Text, nullable=False, default="")
    is_edited = Column(Boolean, default=False, nullable=False)
    edited_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    team = relationship("Team", back_populates="messages")
    sender = relationship("User", foreign_keys=[sender_id])

    @property
    def team_name(self) -> str:
        return self.team.name

    @property
    def sender_email(self) -> str:
        return self.sender.email

class AdminMessage(Base):
    """Admin/subadmin chat. receiver_email holds the general channel sentinel for broadcasts."""
    __tablename__ = "admin_messages"

    id = Column(Integer, primary_key=True, index=True)
    sender_email = Column(String, nullable=False, index=True)
    receiver_email = Column(String, nullable=False, index=True)
    message = Column(Text, nullable=False, default="")
    is_edited = Column(Boolean, default=False, nullable=False)
    edited_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
