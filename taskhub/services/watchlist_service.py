# taskhub/services/watchlist_service.py
"""
Watchlist access model: who may read whose notifications.

An owner grants watchers access to all of their notifications or to a subset
of categories. Updates replace the owner's whole watcher list; nothing is
merged with what was stored before.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy.orm import Session

from taskhub.models import User, Watchlist, WatchlistEntry, ALL_TYPES
from taskhub.schemas.watchlist import WatcherIn, WatcherOut, WatchableOwner
from taskhub.utils.errors import NotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessDecision:
    """
    allowed=False     the viewer holds no grant (a denial, not an empty feed)
    empty=True        allowed, but the requested type is outside the grant
    type_filter=None  no category restriction
    """
    allowed: bool
    type_filter: Optional[List[str]] = None
    empty: bool = False


DENIED = AccessDecision(allowed=False)


def _normalize_types(allowed_types) -> List[str]:
    return list(allowed_types) if allowed_types else [ALL_TYPES]


def _profile_name(user: Optional[User]) -> Optional[str]:
    return user.display_name if user else None


class WatchlistService:
    def __init__(self, db: Session):
        self.db = db

    def get_watchlist(self, owner_id: int) -> Optional[Watchlist]:
        return self.db.query(Watchlist).filter(Watchlist.owner_id == owner_id).first()

    def can_view(self, viewer_id: int, owner_id: int, requested_type: Optional[str] = None) -> AccessDecision:
        if requested_type == ALL_TYPES or requested_type == "":
            requested_type = None

        if viewer_id == owner_id:
            return AccessDecision(allowed=True)

        watchlist = self.get_watchlist(owner_id)
        if watchlist is None:
            logger.info(f"User {viewer_id} denied access to {owner_id}: no watchlist")
            return DENIED

        entry = watchlist.entry_for(viewer_id)
        if entry is None:
            logger.info(f"User {viewer_id} denied access to {owner_id}: not a watcher")
            return DENIED

        allowed_types = _normalize_types(entry.allowed_types)

        if ALL_TYPES in allowed_types:
            # Narrowing by the caller's own filter, never widening
            return AccessDecision(allowed=True, type_filter=[requested_type] if requested_type else None)

        if requested_type:
            if requested_type not in allowed_types:
                return AccessDecision(allowed=True, empty=True)
            return AccessDecision(allowed=True, type_filter=[requested_type])

        return AccessDecision(allowed=True, type_filter=allowed_types)

    def update_my_watchers(self, owner_id: int, watchers: List[WatcherIn]) -> Watchlist:
        """Replace the owner's watcher list wholesale (last write wins)"""
        # Later duplicates override earlier ones; owners can't watch themselves
        grants = {}
        for watcher in watchers:
            if watcher.user_id == owner_id:
                continue
            grants.pop(watcher.user_id, None)
            grants[watcher.user_id] = _normalize_types(watcher.allowed_types)

        if grants:
            found = {
                user_id for (user_id,) in
                self.db.query(User.id).filter(User.id.in_(list(grants))).all()
            }
            missing = sorted(set(grants) - found)
            if missing:
                raise NotFound(f"Unknown watcher user id(s): {', '.join(str(m) for m in missing)}")

        now = datetime.now(timezone.utc)
        watchlist = self.get_watchlist(owner_id)
        if watchlist is None:
            watchlist = Watchlist(owner_id=owner_id)
            self.db.add(watchlist)
        else:
            watchlist.watchers.clear()
            # Flush the orphan deletes before re-inserting the same (watchlist, user) pairs
            self.db.flush()

        watchlist.updated_at = now
        watchlist.watchers.extend(
            WatchlistEntry(user_id=user_id, allowed_types=allowed_types, added_at=now)
            for user_id, allowed_types in grants.items()
        )

        self.db.commit()
        self.db.refresh(watchlist)
        logger.info(f"User {owner_id} watchlist replaced with {len(grants)} watcher(s)")
        return watchlist

    def get_my_settings(self, owner_id: int) -> List[WatcherOut]:
        watchlist = self.get_watchlist(owner_id)
        if watchlist is None:
            return []

        return [
            WatcherOut(
                user_id=entry.user_id,
                email=entry.user.email if entry.user else None,
                name=_profile_name(entry.user),
                role=entry.user.role if entry.user else None,
                allowed_types=_normalize_types(entry.allowed_types),
            )
            for entry in watchlist.watchers
        ]

    def list_who_granted_me_access(self, viewer_id: int) -> List[WatchableOwner]:
        entries = (
            self.db.query(WatchlistEntry)
            .join(Watchlist, WatchlistEntry.watchlist_id == Watchlist.id)
            .filter(WatchlistEntry.user_id == viewer_id)
            .order_by(Watchlist.owner_id)
            .all()
        )

        result = []
        for entry in entries:
            owner = entry.watchlist.owner
            result.append(WatchableOwner(
                owner_id=entry.watchlist.owner_id,
                email=owner.email if owner else None,
                name=_profile_name(owner),
                role=owner.role if owner else None,
                allowed_types=_normalize_types(entry.allowed_types),
            ))
        return result
