"""
Clock abstraction
Every window and reminder computation reads time through a Clock
"""

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional, Protocol, runtime_checkable
from zoneinfo import ZoneInfo

from tzlocal import get_localzone


@runtime_checkable
class Clock(Protocol):
    """Source of the current instant and the device's local time zone"""

    @property
    def tz(self) -> tzinfo:
        ...

    def now(self) -> datetime:
        ...


def resolve_timezone(name: Optional[str]) -> tzinfo:
    """
    Resolve an IANA zone name, falling back to the system's local zone

    The fallback is the system's named zone, not the offset in effect at
    startup, so local midnights keep following DST changes.

    Raises:
        ValueError: No name given and the system zone cannot be determined
    """
    if name:
        return ZoneInfo(name)
    local = get_localzone()
    if local is None:
        raise ValueError("Cannot determine the local time zone, set clock.timezone")
    return local


class SystemClock:
    """Wall-clock time in the configured (or system) time zone"""

    def __init__(self, timezone_name: Optional[str] = None):
        self._tz = resolve_timezone(timezone_name)

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        return datetime.now(self._tz)


class FixedClock:
    """Manually driven clock, used by tests and the debug refresh command"""

    def __init__(self, now: datetime, tz: Optional[tzinfo] = None):
        if now.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")
        self._tz = tz or now.tzinfo
        self._now = now

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        return self._now.astimezone(self._tz)

    def set(self, now: datetime) -> None:
        if now.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")
        self._now = now

    def advance(self, **kwargs) -> datetime:
        """Move the clock forward by timedelta(**kwargs) of elapsed time"""
        # step in UTC so a DST switch does not shift the result
        self._now = self._now.astimezone(timezone.utc) + timedelta(**kwargs)
        return self.now()
