# taskhub/models/watchlist.py
# Who may view a user's notifications. One Watchlist per owner; each entry
# grants one watcher access to ["all"] or a subset of categories.
from sqlalchemy import Column, Integer, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from taskhub.database import Base

class Watchlist(Base):
    __tablename__ = "watchlists"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True, index=True)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    owner = relationship("User", foreign_keys=[owner_id])
    watchers = relationship(
        "WatchlistEntry",
        back_populates="watchlist",
        cascade="all, delete-orphan",
        order_by="WatchlistEntry.id",
    )

    def entry_for(self, user_id: int):
        for entry in self.watchers:
            if entry.user_id == user_id:
                return entry
        return None

class WatchlistEntry(Base):
    __tablename__ = "watchlist_entries"
    __table_args__ = (UniqueConstraint("watchlist_id", "user_id", name="uq_watchlist_watcher"),)

    id = Column(Integer, primary_key=True, index=True)
    watchlist_id = Column(Integer, ForeignKey("watchlists.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    allowed_types = Column(JSON, nullable=False, default=lambda: ["all"])
    added_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    watchlist = relationship("Watchlist", back_populates="watchers")
    user = relationship("User", foreign_keys=[user_id])
