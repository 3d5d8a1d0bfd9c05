"""
Day-bucket memoisation of derived check-in states
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Dict, Iterable, Optional, Tuple

from herebefore_backend.core.logger import get_logger
from herebefore_backend.core.models import CheckInKind, CheckInRecord, CheckInState, Episode

from .state_machine import EpisodeCheckInStateMachine
from .window import calendar_day

logger = get_logger(__name__)


@dataclass
class _CacheEntry:
    states: Dict[CheckInKind, CheckInState]
    valid_from: Optional[datetime]
    valid_until: Optional[datetime]

    def covers(self, now: datetime) -> bool:
        now_utc = now.astimezone(timezone.utc)
        if self.valid_from is not None and now_utc < self.valid_from.astimezone(timezone.utc):
            return False
        return self.valid_until is None or now_utc < self.valid_until.astimezone(timezone.utc)


class CheckInStateCache:
    """
    Memoises states_for() per (episode id, local calendar day)

    An entry only answers for a `now` between the window boundaries around
    the instant it was computed at, so a window that opens or closes mid-day
    is never served stale, even when the clock is set back. Callers
    that change records or dismissals must call invalidate().
    """

    def __init__(self, state_machine: EpisodeCheckInStateMachine, enabled: bool = True):
        self.state_machine = state_machine
        self.enabled = enabled
        self._entries: Dict[Tuple[str, date], _CacheEntry] = {}
        self.hits = 0
        self.misses = 0

    def _day(self, now: datetime) -> date:
        return calendar_day(now, self.state_machine.tz)

    def states_for(
        self, episode: Episode, records: Iterable[CheckInRecord], now: datetime
    ) -> Dict[CheckInKind, CheckInState]:
        if not self.enabled:
            return self.state_machine.states_for(episode, records, now)

        key = (episode.id, self._day(now))
        entry = self._entries.get(key)
        if entry is not None and entry.covers(now):
            self.hits += 1
            return dict(entry.states)

        self.misses += 1
        self.invalidate(episode.id)
        states = self.state_machine.states_for(episode, records, now)
        self._entries[key] = _CacheEntry(
            states=dict(states),
            valid_from=self.state_machine.previous_boundary(episode, now),
            valid_until=self.state_machine.next_boundary(episode, now),
        )
        return states

    def has_pending_check_in(
        self, episode: Episode, records: Iterable[CheckInRecord], now: datetime
    ) -> bool:
        states = self.states_for(episode, records, now)
        return any(state is CheckInState.PENDING for state in states.values())

    def invalidate(self, episode_id: str) -> None:
        for key in [key for key in self._entries if key[0] == episode_id]:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()
        logger.debug("Check-in state cache cleared")

    def __len__(self) -> int:
        return len(self._entries)
