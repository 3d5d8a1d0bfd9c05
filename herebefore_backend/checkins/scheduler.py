"""
Notification scheduler

Keeps the notifier's outstanding requests in line with which check-ins are
pending or upcoming. Identifiers are derived from (episode id, kind) by
notification_id() and nowhere else, so rescheduling the same kind replaces
the earlier request instead of duplicating it.
"""

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from herebefore_backend.core.clock import Clock
from herebefore_backend.core.errors import StaleIdentifier
from herebefore_backend.core.logger import get_logger
from herebefore_backend.core.models import (
    CheckInKind,
    CheckInRecord,
    CheckInState,
    Episode,
    NotificationPayload,
)
from herebefore_backend.core.protocols import NotifierProtocol

from .state_machine import EpisodeCheckInStateMachine
from .window import calendar_day

logger = get_logger(__name__)

DEFAULT_NOTIFICATION_HOUR = 9
DEFAULT_NOTIFICATION_TITLE = "Episode Check-in"

_SCHEDULABLE_STATES = (CheckInState.PENDING, CheckInState.UPCOMING)


def notification_id(episode_id: str, kind: CheckInKind) -> str:
    """Stable notifier identifier for one (episode, kind) pair"""
    return f"{episode_id}_{kind.value}"


def _utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc)


@dataclass
class ReconcileResult:
    """What a reconcile pass did to one episode"""

    scheduled: List[CheckInKind] = field(default_factory=list)
    kept: List[CheckInKind] = field(default_factory=list)
    cancelled: List[CheckInKind] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.scheduled or self.cancelled)


class NotificationScheduler:
    """Schedules and cancels check-in reminders through a Notifier"""

    def __init__(
        self,
        notifier: NotifierProtocol,
        clock: Clock,
        state_machine: Optional[EpisodeCheckInStateMachine] = None,
        hour: int = DEFAULT_NOTIFICATION_HOUR,
        minute: int = 0,
        title: str = DEFAULT_NOTIFICATION_TITLE,
    ):
        if not (0 <= hour < 24 and 0 <= minute < 60):
            raise ValueError(f"Invalid notification time {hour}:{minute}")
        self.notifier = notifier
        self.clock = clock
        self.state_machine = state_machine or EpisodeCheckInStateMachine(clock.tz)
        self.hour = hour
        self.minute = minute
        self.title = title

    def fire_instant(self, episode: Episode, kind: CheckInKind, now: datetime) -> datetime:
        """
        Reminder time for a kind: the target calendar day at the configured hour

        For h24 an instant already in the past moves to the next day. Other
        kinds keep their instant, and scheduling skips them if it has passed.
        """
        tz = self.state_machine.tz or episode.anchor_date.tzinfo
        target_day = calendar_day(episode.anchor_date, tz) + timedelta(days=kind.offset_days)
        fire_at = datetime.combine(target_day, time(self.hour, self.minute), tzinfo=tz)
        if kind is CheckInKind.H24 and _utc(fire_at) <= _utc(now):
            fire_at = datetime.combine(
                target_day + timedelta(days=1), time(self.hour, self.minute), tzinfo=tz
            )
        return fire_at

    def payload_for(self, episode: Episode, kind: CheckInKind) -> NotificationPayload:
        return NotificationPayload(
            title=self.title,
            body=kind.notification_body(episode.title),
            episode_id=episode.id,
            kind=kind,
        )

    def _plan(
        self, episode: Episode, records: Iterable[CheckInRecord], now: datetime
    ) -> Dict[CheckInKind, Optional[Tuple[str, datetime]]]:
        """Which kinds should have an outstanding reminder right now, and when"""
        states = self.state_machine.states_for(episode, records, now)
        plan: Dict[CheckInKind, Optional[Tuple[str, datetime]]] = {}
        for kind in CheckInKind:
            if states[kind] not in _SCHEDULABLE_STATES:
                plan[kind] = None
                continue
            fire_at = self.fire_instant(episode, kind, now)
            if _utc(fire_at) <= _utc(now):
                plan[kind] = None
                continue
            plan[kind] = (notification_id(episode.id, kind), fire_at)
        return plan

    async def _schedule(self, episode: Episode, kind: CheckInKind, identifier: str, fire_at: datetime):
        await self.notifier.schedule(identifier, fire_at, self.payload_for(episode, kind))
        # recorded whether or not the notifier actually registered it
        episode.scheduled_notification_ids[kind] = identifier
        logger.debug(f"Scheduled {identifier} at {fire_at.isoformat()}")

    async def schedule_for_episode(
        self,
        episode: Episode,
        records: Iterable[CheckInRecord] = (),
        now: Optional[datetime] = None,
    ) -> Dict[CheckInKind, Optional[str]]:
        """
        Schedule reminders for every kind that is still ahead

        Args:
            episode: Episode to schedule for; scheduled ids are recorded on it
            records: The episode's check-in records
            now: Evaluation instant, defaults to the clock

        Returns:
            kind -> identifier, or None for skipped kinds. Empty when
            notification permission has not been granted.
        """
        if not await self.notifier.has_permission():
            logger.info(f"Notification permission not granted, skipping episode {episode.id}")
            return {}

        now = now or self.clock.now()
        result: Dict[CheckInKind, Optional[str]] = {}
        for kind, planned in self._plan(episode, list(records), now).items():
            if planned is None:
                result[kind] = None
                continue
            identifier, fire_at = planned
            await self._schedule(episode, kind, identifier, fire_at)
            result[kind] = identifier
        return result

    async def _cancel(self, identifier: str) -> None:
        try:
            await self.notifier.cancel(identifier)
        except StaleIdentifier:
            logger.debug(f"Notification {identifier} already gone, nothing to cancel")

    async def cancel_for_kind(self, episode: Episode, kind: CheckInKind) -> bool:
        """Cancel a kind's reminder, return False if none was recorded"""
        identifier = episode.scheduled_notification_ids.pop(kind, None)
        if identifier is None:
            return False
        await self._cancel(identifier)
        logger.debug(f"Cancelled notification {identifier}")
        return True

    async def cancel_all(self, episode: Episode) -> List[str]:
        """Cancel every recorded reminder of an episode and clear the map"""
        identifiers = list(episode.scheduled_notification_ids.values())
        episode.scheduled_notification_ids.clear()
        if identifiers:
            try:
                await self.notifier.cancel_all(identifiers)
            except StaleIdentifier as e:
                logger.debug(f"Notification {e.identifier} already gone during cancel_all")
            logger.debug(f"Cancelled {len(identifiers)} notifications for episode {episode.id}")
        return identifiers

    async def reconcile(
        self,
        episode: Episode,
        records: Iterable[CheckInRecord] = (),
        now: Optional[datetime] = None,
    ) -> ReconcileResult:
        """
        Bring outstanding reminders in line with the episode's current states

        Every kind that should have a reminder is (re)scheduled under its
        deterministic id, which replaces any request the notifier still
        holds and restores requests a restarted notifier has lost. Kinds
        whose recorded id already matches count as kept. Recorded kinds that
        no longer need a reminder are cancelled; cancelling does not need
        permission, so stale reminders are cleaned up even when scheduling
        is not allowed.
        """
        now = now or self.clock.now()
        plan = self._plan(episode, list(records), now)
        permitted = await self.notifier.has_permission()
        result = ReconcileResult()

        for kind in CheckInKind:
            planned = plan[kind] if permitted else None
            recorded = episode.scheduled_notification_ids.get(kind)

            if planned is None:
                if recorded is not None:
                    await self.cancel_for_kind(episode, kind)
                    result.cancelled.append(kind)
                continue

            identifier, fire_at = planned
            if recorded is not None and recorded != identifier:
                await self._cancel(recorded)
            await self._schedule(episode, kind, identifier, fire_at)
            if recorded == identifier:
                result.kept.append(kind)
            else:
                result.scheduled.append(kind)

        if result.changed:
            logger.info(
                f"Reconciled episode {episode.id}: "
                f"scheduled={[k.value for k in result.scheduled]} "
                f"cancelled={[k.value for k in result.cancelled]}"
            )
        return result
