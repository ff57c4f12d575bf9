from sqlalchemy.orm import Session
from datetime import datetime, timezone
from typing import List, Optional
import logging

from taskhub.config.settings import settings
from taskhub.models import Notification, NotificationCategory, User, ALL_TYPES
from taskhub.schemas.notification import NotificationOut, NotificationPage, WatchedNotificationList
from taskhub.services.events import DomainEvent
from taskhub.services.rooms import personal_room, NOTIFICATION_NEW
from taskhub.services.watchlist_service import WatchlistService
from taskhub.services.websocket_manager import MessageBus, get_message_bus
from taskhub.utils.errors import NotFound, PermissionDenied
from taskhub.utils.pagination import parse_positive_int

logger = logging.getLogger(__name__)


def serialize_notification(notification: Notification) -> dict:
    return NotificationOut.model_validate(notification).model_dump(mode="json", by_alias=True)


class NotificationFanout:
    """Turns a domain event into one stored Notification per recipient plus a live push"""

    def __init__(self, bus: Optional[MessageBus] = None):
        self.bus = bus or get_message_bus()

    def build(self, db: Session, event: DomainEvent) -> List[Notification]:
        """Expand an event into unsaved Notification rows (actor excluded, one per recipient)"""
        seen = {event.actor.id}
        notifications = []

        for draft in event.drafts(db):
            recipient = draft.recipient
            if recipient is None or recipient.id in seen:
                continue
            seen.add(recipient.id)
            notifications.append(Notification(
                recipient_id=recipient.id,
                sender_id=event.actor.id,
                task_id=event.task_id,
                message=draft.message,
                type=event.category.value,
                category=event.category,
                priority=draft.priority,
                meta=dict(draft.metadata),
                is_read=False,
                read_at=None,
            ))

        return notifications

    async def dispatch(self, db: Session, event: DomainEvent) -> List[Notification]:
        """
        Persist and push notifications for an event.

        Runs after the triggering action has been committed and never raises:
        a failure here is logged and the action it reports on stands.
        """
        event_name = type(event).__name__
        try:
            notifications = self.build(db, event)
            if not notifications:
                logger.debug(f"{event_name} by user {event.actor.id} produced no notifications")
                return []

            db.add_all(notifications)
            db.commit()
            for notification in notifications:
                db.refresh(notification)
        except Exception:
            logger.exception(f"Notification fan-out failed for {event_name} by user {event.actor.id}")
            db.rollback()
            return []

        logger.info(f"{event_name}: stored {len(notifications)} notification(s)")
        await self.push(notifications)
        return notifications

    async def push(self, notifications: List[Notification]) -> int:
        """Emit stored notifications to their recipients' personal rooms. Offline users are skipped."""
        delivered = 0
        for notification in notifications:
            try:
                delivered += await self.bus.publish(
                    personal_room(notification.recipient_id),
                    NOTIFICATION_NEW,
                    serialize_notification(notification),
                )
            except Exception:
                logger.exception(f"Live push failed for notification {notification.id}")
        return delivered


class NotificationQueryService:
    """Reads and read-state changes on notification feeds"""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _category_filter(requested: Optional[List[str]]):
        """Map raw type strings to categories. Returns None for "no filter" and [] when nothing can match."""
        if requested is None:
            return None
        valid = {c.value for c in NotificationCategory}
        return [NotificationCategory(value) for value in requested if value in valid]

    def list_notifications(
        self,
        caller: User,
        user_id: Optional[str] = None,
        type: Optional[str] = None,
        page: Optional[str] = None,
        limit: Optional[str] = None,
    ):
        requested_type = type if type and type != ALL_TYPES else None

        if user_id in (None, "") or str(user_id) == str(caller.id):
            return self._own_feed(caller, requested_type, page, limit)

        try:
            owner_id = int(user_id)
        except (TypeError, ValueError):
            raise PermissionDenied("You don't have permission to view this user's notifications")

        return self._watched_feed(caller, owner_id, requested_type)

    def _own_feed(self, caller: User, requested_type: Optional[str], page, limit) -> NotificationPage:
        page = parse_positive_int(page, 1)
        limit = parse_positive_int(limit, settings.DEFAULT_PAGE_SIZE, maximum=settings.MAX_PAGE_SIZE)
        skip = (page - 1) * limit

        query = self.db.query(Notification).filter(Notification.recipient_id == caller.id)

        categories = self._category_filter([requested_type] if requested_type else None)
        if categories is not None:
            if not categories:
                return NotificationPage(notifications=[], has_more=False, total=0, page=page)
            query = query.filter(Notification.category.in_(categories))

        total = query.count()
        # Pages past the end never reach the database (offsets can exceed 64-bit)
        if skip >= total:
            return NotificationPage(notifications=[], has_more=False, total=total, page=page)

        notifications = query.order_by(
            Notification.created_at.desc(), Notification.id.desc()
        ).offset(skip).limit(limit).all()

        return NotificationPage(
            notifications=[NotificationOut.model_validate(n) for n in notifications],
            has_more=total > skip + len(notifications),
            total=total,
            page=page,
        )

    def _watched_feed(self, caller: User, owner_id: int, requested_type: Optional[str]) -> WatchedNotificationList:
        decision = WatchlistService(self.db).can_view(caller.id, owner_id, requested_type)
        if not decision.allowed:
            raise PermissionDenied("You don't have permission to view this user's notifications")
        if decision.empty:
            return WatchedNotificationList(notifications=[])

        query = self.db.query(Notification).filter(Notification.recipient_id == owner_id)

        categories = self._category_filter(decision.type_filter)
        if categories is not None:
            if not categories:
                return WatchedNotificationList(notifications=[])
            query = query.filter(Notification.category.in_(categories))

        notifications = query.order_by(
            Notification.created_at.desc(), Notification.id.desc()
        ).limit(settings.WATCHED_FEED_LIMIT).all()

        return WatchedNotificationList(notifications=[NotificationOut.model_validate(n) for n in notifications])

    def _get_own(self, caller: User, notification_id: int) -> Notification:
        notification = self.db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.recipient_id == caller.id
        ).first()
        if not notification:
            raise NotFound("Notification not found")
        return notification

    def mark_read(self, caller: User, notification_id: int) -> Notification:
        notification = self._get_own(caller, notification_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now(timezone.utc)
            self.db.commit()
            self.db.refresh(notification)
        return notification

    def mark_unread(self, caller: User, notification_id: int) -> Notification:
        notification = self._get_own(caller, notification_id)
        if notification.is_read or notification.read_at is not None:
            notification.is_read = False
            notification.read_at = None
            self.db.commit()
            self.db.refresh(notification)
        return notification

    def mark_all_read(self, caller: User) -> int:
        """Only ever touches the caller's own unread rows"""
        updated_count = self.db.query(Notification).filter(
            Notification.recipient_id == caller.id,
            Notification.is_read == False
        ).update({
            "is_read": True,
            "read_at": datetime.now(timezone.utc)
        }, synchronize_session=False)
        self.db.commit()
        logger.info(f"User {caller.id} marked {updated_count} notification(s) as read")
        return updated_count

    def unread_count(self, caller: User) -> int:
        return self.db.query(Notification).filter(
            Notification.recipient_id == caller.id,
            Notification.is_read == False
        ).count()
