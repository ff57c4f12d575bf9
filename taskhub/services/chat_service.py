# taskhub/services/chat_service.py
"""
Team chat and admin/subadmin chat.

Sending stores the message, broadcasts it to the chat room and then runs the
chat notification fan-out. Edits are re-broadcast to the room the original
message went to.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from sqlalchemy import or_
from sqlalchemy.orm import Session

from taskhub.config.settings import settings
from taskhub.models import AdminMessage, Team, TeamMessage, User, UserRole
from taskhub.schemas.chat import AdminMessageOut, TeamMessageOut, TeamMember
from taskhub.services.events import AdminBroadcastMessage, AdminDirectMessage, TeamChatMessage
from taskhub.services.notification_service import NotificationFanout
from taskhub.services.rooms import (
    ADMIN_GENERAL_ROOM,
    ADMIN_MESSAGE_NEW,
    MESSAGE_UPDATED,
    TEAM_MESSAGE_NEW,
    admin_dm_key,
    admin_dm_room,
    team_room,
)
from taskhub.services.websocket_manager import MessageBus, get_message_bus
from taskhub.utils.errors import NotFound, PermissionDenied, ValidationFailed

logger = logging.getLogger(__name__)

GENERAL = "general"


def _clean(message: Optional[str]) -> str:
    text = (message or "").strip()
    if not text:
        raise ValidationFailed("Message cannot be empty")
    return text


class ChatService:
    def __init__(self, db: Session, bus: Optional[MessageBus] = None):
        self.db = db
        self.bus = bus or get_message_bus()
        self.fanout = NotificationFanout(self.bus)

    # ------------------------------------------------------------------
    # Team chat
    # ------------------------------------------------------------------

    def get_employee_teams(self, user: User) -> List[Team]:
        if user.role != UserRole.EMPLOYEE.value:
            raise PermissionDenied("Only employees can access team chat")
        return sorted(user.teams, key=lambda team: team.name)

    def _get_team_for(self, user: User, team_name: str) -> Team:
        team = self.db.query(Team).filter(Team.name == team_name).first()
        if user.role == UserRole.EMPLOYEE.value and (team is None or not team.has_member(user.id)):
            raise PermissionDenied("You are not a member of this team")
        if team is None:
            raise NotFound("Team not found")
        return team

    def get_team_history(self, user: User, team_name: str) -> Tuple[List[TeamMessage], List[TeamMember]]:
        team = self._get_team_for(user, team_name)
        messages = (
            self.db.query(TeamMessage)
            .filter(TeamMessage.team_id == team.id)
            .order_by(TeamMessage.created_at, TeamMessage.id)
            .all()
        )
        members = [TeamMember(email=m.email, name=m.display_name) for m in team.members]
        return messages, members

    async def send_team_message(self, user: User, team_name: str, message: Optional[str]) -> TeamMessage:
        text = _clean(message)
        team = self._get_team_for(user, team_name)

        team_message = TeamMessage(team_id=team.id, sender_id=user.id, message=text)
        self.db.add(team_message)
        self.db.commit()
        self.db.refresh(team_message)

        await self.bus.publish(
            team_room(team.name),
            TEAM_MESSAGE_NEW,
            TeamMessageOut.model_validate(team_message).model_dump(mode="json", by_alias=True),
        )
        await self.fanout.dispatch(self.db, TeamChatMessage(actor=user, team=team))
        return team_message

    async def edit_team_message(self, user: User, team_name: str, message_id: int, message: Optional[str]) -> TeamMessage:
        text = _clean(message)
        team = self._get_team_for(user, team_name)

        team_message = self.db.query(TeamMessage).filter(
            TeamMessage.id == message_id,
            TeamMessage.team_id == team.id
        ).first()
        if not team_message:
            raise NotFound("Message not found")
        if team_message.sender_id != user.id:
            raise PermissionDenied("You can only edit your own messages")

        team_message.message = text
        team_message.is_edited = True
        team_message.edited_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(team_message)

        await self.bus.publish(
            team_room(team.name),
            MESSAGE_UPDATED,
            TeamMessageOut.model_validate(team_message).model_dump(mode="json", by_alias=True),
        )
        return team_message

    # ------------------------------------------------------------------
    # Admin / subadmin chat
    # ------------------------------------------------------------------

    @staticmethod
    def _require_staff(user: User):
        if not user.is_staff:
            raise PermissionDenied("Only admins and subadmins can access admin chat")

    def room_for(self, message: AdminMessage, sender: User) -> str:
        if message.receiver_email == settings.GENERAL_CHANNEL_EMAIL:
            return ADMIN_GENERAL_ROOM
        return admin_dm_room(admin_dm_key(sender, message.receiver_email))

    def get_admin_history(self, user: User, channel: Optional[str]) -> List[AdminMessage]:
        self._require_staff(user)
        channel = channel or GENERAL
        general = settings.GENERAL_CHANNEL_EMAIL
        query = self.db.query(AdminMessage)

        if channel == GENERAL:
            query = query.filter(AdminMessage.receiver_email == general)
        elif user.role == UserRole.ADMIN.value:
            query = query.filter(or_(
                (AdminMessage.sender_email == user.email) & (AdminMessage.receiver_email == channel),
                (AdminMessage.sender_email == channel) & (AdminMessage.receiver_email == user.email),
                AdminMessage.receiver_email == general,
            ))
        else:
            query = query.filter(or_(
                AdminMessage.sender_email == user.email,
                AdminMessage.receiver_email == user.email,
                AdminMessage.receiver_email == general,
            ))

        return query.order_by(AdminMessage.created_at, AdminMessage.id).all()

    async def send_admin_message(
        self,
        user: User,
        message: Optional[str],
        receiver_email: Optional[str] = None,
        channel: Optional[str] = None,
    ) -> AdminMessage:
        self._require_staff(user)
        text = _clean(message)

        receiver = receiver_email
        if receiver_email == GENERAL or channel == GENERAL or not receiver_email:
            receiver = settings.GENERAL_CHANNEL_EMAIL

        admin_message = AdminMessage(sender_email=user.email, receiver_email=receiver, message=text)
        self.db.add(admin_message)
        self.db.commit()
        self.db.refresh(admin_message)

        await self.bus.publish(
            self.room_for(admin_message, user),
            ADMIN_MESSAGE_NEW,
            AdminMessageOut.model_validate(admin_message).model_dump(mode="json", by_alias=True),
        )

        if receiver == settings.GENERAL_CHANNEL_EMAIL:
            event = AdminBroadcastMessage(actor=user)
        else:
            event = AdminDirectMessage(actor=user, receiver_email=receiver)
        await self.fanout.dispatch(self.db, event)
        return admin_message

    async def edit_admin_message(self, user: User, message_id: int, message: Optional[str]) -> AdminMessage:
        self._require_staff(user)
        text = _clean(message)

        admin_message = self.db.query(AdminMessage).filter(AdminMessage.id == message_id).first()
        if not admin_message:
            raise NotFound("Message not found")
        if admin_message.sender_email != user.email:
            raise PermissionDenied("You can only edit your own messages")

        admin_message.message = text
        admin_message.is_edited = True
        admin_message.edited_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(admin_message)

        await self.bus.publish(
            self.room_for(admin_message, user),
            MESSAGE_UPDATED,
            AdminMessageOut.model_validate(admin_message).model_dump(mode="json", by_alias=True),
        )
        return admin_message
