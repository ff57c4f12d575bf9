# taskhub/services/rooms.py
"""
Room naming and join authorization for the real-time channel.

Room names are shared with existing clients and must not change:

    notif:<userId>        personal notification stream
    team:<teamName>       team chat
    admin:general         admin/subadmin broadcast chat
    admin:dm:<email>      admin <-> subadmin direct chat, keyed on the subadmin's email
"""

import logging
from typing import Optional
from sqlalchemy.orm import Session

from taskhub.models import Team, User, UserRole

logger = logging.getLogger(__name__)

PERSONAL_PREFIX = "notif:"
TEAM_PREFIX = "team:"
ADMIN_GENERAL_ROOM = "admin:general"
ADMIN_DM_PREFIX = "admin:dm:"

# Server -> client events
NOTIFICATION_NEW = "notification:new"
TEAM_MESSAGE_NEW = "chat:team:new_message"
ADMIN_MESSAGE_NEW = "chat:admin:new_message"
MESSAGE_UPDATED = "chat:message_updated"
TYPING = "chat:typing"
STOP_TYPING = "chat:stop_typing"

# Client -> server events
JOIN = "chat:join"
LEAVE = "chat:leave"


def personal_room(user_id: int) -> str:
    return f"{PERSONAL_PREFIX}{user_id}"


def team_room(team_name: str) -> str:
    return f"{TEAM_PREFIX}{team_name}"


def admin_dm_room(email: str) -> str:
    return f"{ADMIN_DM_PREFIX}{email}"


def admin_dm_key(sender: User, counterpart_email: str) -> str:
    """The admin keys DM rooms on the counterpart, a subadmin always on itself"""
    if sender.role == UserRole.ADMIN.value:
        return counterpart_email
    return sender.email


class RoomPolicy:
    """Decides whether a connected user may join a room"""

    def __init__(self, db: Session):
        self.db = db

    def can_join(self, user: User, room: Optional[str]) -> bool:
        if not room or not isinstance(room, str):
            return False

        if room.startswith(PERSONAL_PREFIX):
            return room == personal_room(user.id)

        if room.startswith(TEAM_PREFIX):
            return self._can_join_team(user, room[len(TEAM_PREFIX):])

        if room == ADMIN_GENERAL_ROOM:
            return user.is_staff

        if room.startswith(ADMIN_DM_PREFIX):
            email = room[len(ADMIN_DM_PREFIX):]
            if user.role == UserRole.ADMIN.value:
                return bool(email)
            return user.role == UserRole.SUBADMIN.value and email == user.email

        return False

    def _can_join_team(self, user: User, team_name: str) -> bool:
        team = self.db.query(Team).filter(Team.name == team_name).first()
        if team is None:
            return False
        # Same rule as team chat history and posting: staff oversee every team
        if user.is_staff:
            return True
        return team.has_member(user.id)
