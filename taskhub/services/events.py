# taskhub/services/events.py
"""
Domain events that produce notifications.

Every event knows its category and how to expand itself into per-recipient
drafts (recipient, message, priority, metadata). The fan-out applies the
rules shared by all events: the actor is dropped, recipients are unique and
one Notification row is written per draft.

Task and team mutations happen in other services; they build one of these
events after committing and hand it to NotificationFanout.dispatch().
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar, Dict, Iterator, List, Optional
from sqlalchemy.orm import Session

from taskhub.config.settings import settings
from taskhub.models import User, UserRole, Task, Team, NotificationCategory, NotificationPriority


@dataclass(frozen=True)
class Draft:
    recipient: User
    message: str
    priority: NotificationPriority = NotificationPriority.PRIMARY
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, eq=False)
class DomainEvent(ABC):
    category: ClassVar[NotificationCategory]

    actor: User

    @property
    def task_id(self) -> Optional[int]:
        return None

    @abstractmethod
    def drafts(self, db: Session) -> Iterator[Draft]:
        ...


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class TaskAssigned(DomainEvent):
    """A task was created for, or reassigned to, `assignee`"""
    category: ClassVar[NotificationCategory] = NotificationCategory.ASSIGNMENT

    task: Task
    assignee: User

    @property
    def task_id(self) -> Optional[int]:
        return self.task.id

    def drafts(self, db: Session) -> Iterator[Draft]:
        yield Draft(
            recipient=self.assignee,
            message=f'You have been assigned a new task: "{self.task.title}" by {self.actor.email}',
        )


@dataclass(frozen=True, eq=False)
class TaskEdited(DomainEvent):
    category: ClassVar[NotificationCategory] = NotificationCategory.TASK_EDIT

    task: Task

    @property
    def task_id(self) -> Optional[int]:
        return self.task.id

    def drafts(self, db: Session) -> Iterator[Draft]:
        task = self.task
        team_name = task.team.name if task.team else None
        assignee = task.assignee

        if assignee is not None:
            yield Draft(
                recipient=assignee,
                message=f'Your task "{task.title}" was updated by {self.actor.email}',
                metadata={"teamName": team_name} if team_name else {},
            )

        if task.team is not None:
            assignee_email = assignee.email if assignee else ""
            for member in task.team.members:
                if assignee is not None and member.id == assignee.id:
                    continue
                yield Draft(
                    recipient=member,
                    message=f'Task "{task.title}" ({assignee_email}) was updated',
                    priority=NotificationPriority.SECONDARY,
                    metadata={"teamName": team_name, "affectedUser": assignee_email},
                )


@dataclass(frozen=True, eq=False)
class TaskStatusChanged(DomainEvent):
    """Only status changes made by employees are reported upwards"""
    category: ClassVar[NotificationCategory] = NotificationCategory.STATUS_CHANGE

    task: Task
    old_status: str
    new_status: str

    @property
    def task_id(self) -> Optional[int]:
        return self.task.id

    def drafts(self, db: Session) -> Iterator[Draft]:
        if self.actor.role != UserRole.EMPLOYEE.value or self.old_status == self.new_status:
            return

        message = f'Task "{self.task.title}" status updated to {self.new_status} by {self.actor.email}'

        team = self.task.team
        if team is not None and team.subadmin is not None:
            yield Draft(recipient=team.subadmin, message=message)

        admins = db.query(User).filter(User.role == UserRole.ADMIN.value).order_by(User.id).all()
        for admin in admins:
            yield Draft(recipient=admin, message=message)


# ---------------------------------------------------------------------------
# Teams
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class TeamMembersChanged(DomainEvent):
    """
    A team was saved. `previous_members` and `previous_subadmin_id` describe
    the team before the update; `team` is the committed state.
    """
    category: ClassVar[NotificationCategory] = NotificationCategory.TEAM_CHANGE

    team: Team
    previous_members: List[User]
    previous_subadmin_id: Optional[int] = None

    def drafts(self, db: Session) -> Iterator[Draft]:
        team_name = self.team.name
        before = {user.id: user for user in self.previous_members}
        after = {user.id: user for user in self.team.members}

        removed = [user for uid, user in before.items() if uid not in after]
        added = [user for uid, user in after.items() if uid not in before]
        unchanged = [user for uid, user in before.items() if uid in after]
        members_changed = bool(removed or added)

        subadmin = self.team.subadmin
        if subadmin is not None:
            if members_changed:
                yield Draft(
                    recipient=subadmin,
                    message=f'Team "{team_name}" was updated',
                    metadata={"teamName": team_name, "changeType": "update"},
                )
            elif self.previous_subadmin_id != subadmin.id:
                yield Draft(
                    recipient=subadmin,
                    message=f'You are now the coordinator of team "{team_name}"',
                    metadata={"teamName": team_name, "changeType": "coordinator"},
                )

        for user in removed:
            yield Draft(
                recipient=user,
                message=f'You were removed from team "{team_name}"',
                metadata={"teamName": team_name, "changeType": "removed"},
            )

        for user in added:
            yield Draft(
                recipient=user,
                message=f'You were added to team "{team_name}"',
                metadata={"teamName": team_name, "changeType": "added"},
            )

        if not members_changed:
            return

        changes = []
        if removed:
            changes.append(f"{', '.join(u.email for u in removed)} removed")
        if added:
            changes.append(f"{', '.join(u.email for u in added)} added")
        summary = "; ".join(changes)

        for user in unchanged:
            yield Draft(
                recipient=user,
                message=f'Team "{team_name}" updated: {summary}',
                priority=NotificationPriority.SECONDARY,
                metadata={"teamName": team_name, "changeType": "member_change"},
            )


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class TeamChatMessage(DomainEvent):
    category: ClassVar[NotificationCategory] = NotificationCategory.CHAT

    team: Team

    def drafts(self, db: Session) -> Iterator[Draft]:
        for member in self.team.members:
            yield Draft(
                recipient=member,
                message=f"You have unread messages in {self.team.name} chat",
                metadata={"chatName": self.team.name},
            )


@dataclass(frozen=True, eq=False)
class AdminBroadcastMessage(DomainEvent):
    category: ClassVar[NotificationCategory] = NotificationCategory.CHAT

    def drafts(self, db: Session) -> Iterator[Draft]:
        staff = (
            db.query(User)
            .filter(User.role.in_([UserRole.SUBADMIN.value, UserRole.ADMIN.value]))
            .order_by(User.id)
            .all()
        )
        for user in staff:
            yield Draft(
                recipient=user,
                message="You have unread messages in Admin Chat (General)",
                metadata={"chatName": "Admin Chat - General"},
            )


@dataclass(frozen=True, eq=False)
class AdminDirectMessage(DomainEvent):
    category: ClassVar[NotificationCategory] = NotificationCategory.CHAT

    receiver_email: str

    def drafts(self, db: Session) -> Iterator[Draft]:
        if self.receiver_email == settings.GENERAL_CHANNEL_EMAIL:
            return
        receiver = db.query(User).filter(User.email == self.receiver_email).first()
        if receiver is None:
            return
        yield Draft(
            recipient=receiver,
            message=f"You have unread messages from {self.actor.email}",
            metadata={"chatName": f"Admin Chat - {self.actor.email}"},
        )
