"""
Check-in window calculation

Pure functions mapping (anchor date, kind, now) to the window a check-in may
be completed in. Window status is never stored; callers recompute it.
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Tuple

from herebefore_backend.core.models import CheckInKind, CheckInWindow, WindowStatus


def _check_aware(value: datetime, name: str) -> None:
    if not isinstance(value, datetime):
        raise TypeError(f"{name} must be a datetime, got {type(value).__name__}")
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware: {value!r}")


def local_midnight(day: date, tz: tzinfo) -> datetime:
    """Start of a calendar day in the given zone"""
    return datetime.combine(day, time(0, 0), tzinfo=tz)


def calendar_day(instant: datetime, tz: Optional[tzinfo] = None) -> date:
    """Local calendar day an instant falls on"""
    return instant.astimezone(tz or instant.tzinfo).date()


def _add_elapsed_hours(start: datetime, hours: int, tz: tzinfo) -> datetime:
    # aware + timedelta is wall-clock arithmetic, go through UTC for real hours
    return (start.astimezone(timezone.utc) + timedelta(hours=hours)).astimezone(tz)


def window_bounds(
    anchor_date: datetime, kind: CheckInKind, tz: Optional[tzinfo] = None
) -> Tuple[datetime, datetime]:
    """Return (window_start, window_end) for a kind, in the local zone"""
    _check_aware(anchor_date, "anchor_date")
    if not isinstance(kind, CheckInKind):
        raise TypeError(f"kind must be a CheckInKind, got {kind!r}")

    tz = tz or anchor_date.tzinfo
    anchor_day = calendar_day(anchor_date, tz)
    window_start = local_midnight(anchor_day + timedelta(days=kind.offset_days), tz)

    if kind is CheckInKind.H24:
        # the whole calendar day after the anchor, whatever its length
        window_end = local_midnight(anchor_day + timedelta(days=2), tz)
    else:
        window_end = _add_elapsed_hours(window_start, kind.window_length_hours, tz)

    return window_start, window_end


def status_at(window_start: datetime, window_end: datetime, now: datetime) -> WindowStatus:
    """Where `now` falls relative to [window_start, window_end)"""
    _check_aware(now, "now")
    now_utc = now.astimezone(timezone.utc)
    if now_utc < window_start.astimezone(timezone.utc):
        return WindowStatus.NOT_YET_OPEN
    if now_utc < window_end.astimezone(timezone.utc):
        return WindowStatus.OPEN
    return WindowStatus.EXPIRED


def window_for(
    anchor_date: datetime,
    kind: CheckInKind,
    now: datetime,
    tz: Optional[tzinfo] = None,
) -> CheckInWindow:
    """
    Compute the check-in window for one kind of an episode

    Args:
        anchor_date: When the episode happened (timezone-aware)
        kind: Check-in kind
        now: Evaluation instant (timezone-aware)
        tz: Local zone for calendar-day arithmetic, defaults to the anchor's zone

    Returns:
        CheckInWindow with status and boundaries
    """
    window_start, window_end = window_bounds(anchor_date, kind, tz)
    return CheckInWindow(
        kind=kind,
        status=status_at(window_start, window_end, now),
        window_start=window_start,
        window_end=window_end,
    )


def time_remaining(window: CheckInWindow, now: datetime) -> str:
    """Human readable time left until the window closes"""
    _check_aware(now, "now")
    remaining = window.window_end.astimezone(timezone.utc) - now.astimezone(timezone.utc)
    days = remaining.days
    hours = remaining.seconds // 3600
    if days > 0:
        return f"{days} day{'' if days == 1 else 's'} remaining"
    if days == 0 and hours > 0:
        return f"{hours} hour{'' if hours == 1 else 's'} remaining"
    return "Available now"
