# taskhub/schemas/notification.py
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, Dict, Any, List
from datetime import datetime
from taskhub.models.notification import NotificationCategory, NotificationPriority

class CamelModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

class NotificationOut(CamelModel):
    id: int
    recipient_id: int
    sender_id: int
    task_id: Optional[int] = None
    message: str
    type: str
    category: NotificationCategory
    priority: NotificationPriority
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        validation_alias="meta",
        serialization_alias="metadata",
    )
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

class NotificationPage(CamelModel):
    notifications: List[NotificationOut]
    has_more: bool
    total: int
    page: int

class WatchedNotificationList(CamelModel):
    notifications: List[NotificationOut]

class UnreadCount(CamelModel):
    unread: int

class SuccessResponse(CamelModel):
    success: bool = True
