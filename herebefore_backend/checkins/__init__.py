"""
Check-in lifecycle: windows, derived states, reminders and tap navigation
"""

from .cache import CheckInStateCache
from .navigation import NavigationRouter
from .scheduler import NotificationScheduler, ReconcileResult, notification_id
from .state_machine import EpisodeCheckInStateMachine
from .window import calendar_day, time_remaining, window_bounds, window_for

__all__ = [
    "CheckInStateCache",
    "EpisodeCheckInStateMachine",
    "NavigationRouter",
    "NotificationScheduler",
    "ReconcileResult",
    "calendar_day",
    "notification_id",
    "time_remaining",
    "window_bounds",
    "window_for",
]
