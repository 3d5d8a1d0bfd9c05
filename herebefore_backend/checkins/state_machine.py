"""
Per-episode check-in state machine

Combines window calculation with completion and dismissal records into one
of five states per kind. Nothing here is stored: every query re-derives the
state from the episode, its records and the current instant.
"""

from datetime import datetime, timezone, tzinfo
from typing import Dict, Iterable, List, Optional, Set

from herebefore_backend.core.logger import get_logger
from herebefore_backend.core.models import (
    CheckInKind,
    CheckInRecord,
    CheckInState,
    CheckInWindow,
    Episode,
    WindowStatus,
)

from .window import window_bounds, window_for

logger = get_logger(__name__)

_WINDOW_STATES = {
    WindowStatus.OPEN: CheckInState.PENDING,
    WindowStatus.NOT_YET_OPEN: CheckInState.UPCOMING,
    WindowStatus.EXPIRED: CheckInState.CLOSED,
}


def completed_kinds(episode: Episode, records: Iterable[CheckInRecord]) -> Set[CheckInKind]:
    return {record.kind for record in records if record.episode_id == episode.id}


class EpisodeCheckInStateMachine:
    """Derives check-in states for episodes"""

    def __init__(self, tz: Optional[tzinfo] = None):
        # Local zone for calendar arithmetic; None means each anchor's own zone
        self.tz = tz

    def window(self, episode: Episode, kind: CheckInKind, now: datetime) -> CheckInWindow:
        return window_for(episode.anchor_date, kind, now, self.tz)

    def windows_for(self, episode: Episode, now: datetime) -> Dict[CheckInKind, CheckInWindow]:
        return {kind: self.window(episode, kind, now) for kind in CheckInKind}

    def state_for(
        self,
        episode: Episode,
        kind: CheckInKind,
        records: Iterable[CheckInRecord],
        now: datetime,
    ) -> CheckInState:
        """
        Derive the state of one kind

        Precedence: completed, dismissed, pending, upcoming, closed.
        """
        if kind in completed_kinds(episode, records):
            return CheckInState.COMPLETED
        if kind in episode.dismissed_kinds:
            return CheckInState.DISMISSED
        return _WINDOW_STATES[self.window(episode, kind, now).status]

    def states_for(
        self, episode: Episode, records: Iterable[CheckInRecord], now: datetime
    ) -> Dict[CheckInKind, CheckInState]:
        records = list(records)
        return {kind: self.state_for(episode, kind, records, now) for kind in CheckInKind}

    def pending_kinds(
        self, episode: Episode, records: Iterable[CheckInRecord], now: datetime
    ) -> List[CheckInKind]:
        states = self.states_for(episode, records, now)
        return [kind for kind, state in states.items() if state is CheckInState.PENDING]

    def has_pending_check_in(
        self, episode: Episode, records: Iterable[CheckInRecord], now: datetime
    ) -> bool:
        return bool(self.pending_kinds(episode, records, now))

    def dismiss_check_in(self, episode: Episode, kind: CheckInKind) -> bool:
        """Mark a kind dismissed, return False if it already was"""
        if not isinstance(kind, CheckInKind):
            raise TypeError(f"kind must be a CheckInKind, got {kind!r}")
        if kind in episode.dismissed_kinds:
            logger.debug(f"Check-in {kind.value} already dismissed for {episode.id}")
            return False
        episode.dismissed_kinds.add(kind)
        return True

    def next_boundary(self, episode: Episode, now: datetime) -> Optional[datetime]:
        """Earliest window start or end strictly after now, None once all windows closed"""
        now_utc = now.astimezone(timezone.utc)
        upcoming = []
        for kind in CheckInKind:
            for boundary in window_bounds(episode.anchor_date, kind, self.tz):
                if boundary.astimezone(timezone.utc) > now_utc:
                    upcoming.append(boundary)
        return min(upcoming, key=lambda b: b.astimezone(timezone.utc)) if upcoming else None

    def previous_boundary(self, episode: Episode, now: datetime) -> Optional[datetime]:
        """Latest window start or end at or before now, None before the first window opens"""
        now_utc = now.astimezone(timezone.utc)
        passed = []
        for kind in CheckInKind:
            for boundary in window_bounds(episode.anchor_date, kind, self.tz):
                if boundary.astimezone(timezone.utc) <= now_utc:
                    passed.append(boundary)
        return max(passed, key=lambda b: b.astimezone(timezone.utc)) if passed else None
