# taskhub/routers/watchlist.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from taskhub.database import get_db
from taskhub.models.user import User
from taskhub.schemas.notification import SuccessResponse
from taskhub.schemas.watchlist import WatchlistUpdate, WatchlistSettings, CanWatchResponse
from taskhub.services.watchlist_service import WatchlistService
from taskhub.utils.auth import get_current_user

router = APIRouter()

@router.get("/my-settings", response_model=WatchlistSettings)
def get_my_settings(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Users the current user has granted access to their notifications"""
    return WatchlistSettings(watchers=WatchlistService(db).get_my_settings(current_user.id))

@router.put("/update", response_model=SuccessResponse)
def update_watchlist(
    payload: WatchlistUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Replace the current user's watcher list"""
    WatchlistService(db).update_my_watchers(current_user.id, payload.watchers)
    return SuccessResponse()

@router.get("/i-can-watch", response_model=CanWatchResponse)
def get_i_can_watch(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Users who have granted the current user access to their notifications"""
    return CanWatchResponse(can_watch=WatchlistService(db).list_who_granted_me_access(current_user.id))
