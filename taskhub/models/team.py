# taskhub/models/team.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Table
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from taskhub.database import Base

# Association table for many-to-many relationship between teams and users
team_members = Table(
    'team_members',
    Base.metadata,
    Column('team_id', Integer, ForeignKey('teams.id'), primary_key=True),
    Column('user_id', Integer, ForeignKey('users.id'), primary_key=True)
)

class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True, index=True)
    subadmin_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    subadmin = relationship("User", foreign_keys=[subadmin_id], backref="coordinated_teams")
    members = relationship("User", secondary=team_members, backref="teams")
    tasks = relationship("Task", back_populates="team")
    messages = relationship("TeamMessage", back_populates="team", cascade="all, delete-orphan")

    def has_member(self, user_id: int) -> bool:
        return any(member.id == user_id for member in self.members)
