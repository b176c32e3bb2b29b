"""SQLAlchemy models for the NOC dashboard."""

from .pop import Pop
from .analyst import Analyst
from .shift import Shift
from .schedule import Schedule
from .sync_log import SyncLog
from .config_entry import ConfigEntry
from .user import User, UserPermission

__all__ = [
    "Pop",
    "Analyst",
    "Shift",
    "Schedule",
    "SyncLog",
    "ConfigEntry",
    "User",
    "UserPermission",
]
