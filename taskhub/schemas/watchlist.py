# taskhub/schemas/watchlist.py
from pydantic import field_validator
from typing import Optional, List, Literal

from taskhub.schemas.notification import CamelModel

WatchScope = Literal["all", "assignment", "task_edit", "team_change", "chat", "status_change"]

class WatcherIn(CamelModel):
    user_id: int
    allowed_types: Optional[List[WatchScope]] = None

    @field_validator("allowed_types")
    @classmethod
    def default_to_all(cls, value):
        # An empty grant means "everything"
        if not value:
            return ["all"]
        return list(dict.fromkeys(value))

class WatchlistUpdate(CamelModel):
    watchers: List[WatcherIn] = []

class WatcherOut(CamelModel):
    user_id: int
    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    allowed_types: List[str]

class WatchlistSettings(CamelModel):
    watchers: List[WatcherOut]

class WatchableOwner(CamelModel):
    owner_id: int
    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    allowed_types: List[str]

class CanWatchResponse(CamelModel):
    can_watch: List[WatchableOwner]
