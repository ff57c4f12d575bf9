from .user import User, UserRole
from .team import Team, team_members
from .task import Task, TaskStatus
from .notification import Notification, NotificationCategory, NotificationPriority, ALL_TYPES
from .watchlist import Watchlist, WatchlistEntry
from .message import TeamMessage, AdminMessage
