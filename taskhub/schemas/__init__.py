from .notification import NotificationOut, NotificationPage, WatchedNotificationList, UnreadCount, SuccessResponse
from .watchlist import WatcherIn, WatchlistUpdate, WatcherOut, WatchlistSettings, WatchableOwner, CanWatchResponse
from .chat import ChatMessageIn, AdminMessageIn, TeamMessageOut, AdminMessageOut, TeamHistory, AdminHistory, ChatTeamsResponse, TeamMessageResponse, AdminMessageResponse
