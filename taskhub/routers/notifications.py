from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional, Union

from taskhub.database import get_db
from taskhub.models.user import User
from taskhub.schemas import notification as notification_schema
from taskhub.services.notification_service import NotificationQueryService
from taskhub.utils.auth import get_current_user

router = APIRouter()

# read-all and unread-count are registered before the /{notification_id} routes

@router.put("/read-all", response_model=notification_schema.SuccessResponse)
async def mark_all_notifications_as_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Mark all of the current user's notifications as read"""
    NotificationQueryService(db).mark_all_read(current_user)
    return notification_schema.SuccessResponse()

@router.get("/unread-count", response_model=notification_schema.UnreadCount)
async def get_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return notification_schema.UnreadCount(unread=NotificationQueryService(db).unread_count(current_user))

@router.get(
    "",
    response_model=Union[notification_schema.NotificationPage, notification_schema.WatchedNotificationList],
)
async def get_notifications(
    user_id: Optional[str] = Query(None, alias="userId"),
    type: Optional[str] = Query(None),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Own feed (paginated) or, with userId, a watched user's feed.

    Watched feeds are subject to the owner's watchlist and are returned
    unpaged.
    """
    return NotificationQueryService(db).list_notifications(
        current_user,
        user_id=user_id,
        type=type,
        page=page,
        limit=limit,
    )

@router.put("/{notification_id}/read", response_model=notification_schema.SuccessResponse)
async def mark_notification_as_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    NotificationQueryService(db).mark_read(current_user, notification_id)
    return notification_schema.SuccessResponse()

@router.put("/{notification_id}/unread", response_model=notification_schema.SuccessResponse)
async def mark_notification_as_unread(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    NotificationQueryService(db).mark_unread(current_user, notification_id)
    return notification_schema.SuccessResponse()
