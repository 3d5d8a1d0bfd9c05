"""
Check-in service layer
Episode and check-in operations with persistence-first ordering

Every mutating operation writes to the store before it touches the
notifier, and works on a copy of the episode so a failed write leaves
nothing half-applied. The badge is re-pushed and a state-changed event is
emitted once the operation settled.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from herebefore_backend.checkins.cache import CheckInStateCache
from herebefore_backend.checkins.scheduler import NotificationScheduler, ReconcileResult
from herebefore_backend.checkins.window import time_remaining
from herebefore_backend.core.clock import Clock
from herebefore_backend.core.errors import (
    CheckInNotFound,
    EpisodeNotFound,
    PermissionDenied,
    RecordNotFound,
)
from herebefore_backend.core.events import (
    emit_check_in_state_changed,
    emit_episode_created,
    emit_episode_deleted,
)
from herebefore_backend.core.logger import get_logger
from herebefore_backend.core.models import (
    CheckInKind,
    CheckInRecord,
    CheckInState,
    CheckInWindow,
    Episode,
    EpisodeNote,
    new_id,
)
from herebefore_backend.core.protocols import PersistenceStoreProtocol

from .badge_service import BadgeService

logger = get_logger(__name__)


def _clean_text(text: str, what: str) -> str:
    if not isinstance(text, str):
        raise TypeError(f"{what} must be a string")
    cleaned = text.strip()
    if not cleaned:
        raise ValueError(f"{what} must not be empty")
    return cleaned


@dataclass
class PendingCheckIn:
    """An open check-in window waiting for the user"""

    episode: Episode
    kind: CheckInKind
    window: CheckInWindow
    time_remaining: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "episodeId": self.episode.id,
            "episodeTitle": self.episode.title,
            "kind": self.kind.value,
            "displayName": self.kind.display_name,
            "prompt": self.kind.prompt,
            "window": self.window.to_dict(),
            "timeRemaining": self.time_remaining,
        }


class CheckInService:
    """Check-in service class"""

    def __init__(
        self,
        store: PersistenceStoreProtocol,
        scheduler: NotificationScheduler,
        cache: CheckInStateCache,
        badge: BadgeService,
        clock: Clock,
    ):
        self.store = store
        self.scheduler = scheduler
        self.state_machine = scheduler.state_machine
        self.cache = cache
        self.badge = badge
        self.clock = clock

    # ------------------------------------------------------------------
    # Episodes
    # ------------------------------------------------------------------

    async def create_episode(
        self,
        title: str,
        anchor_date: Optional[datetime] = None,
        emotions: Optional[Dict[str, int]] = None,
        prompts: Optional[Dict[str, str]] = None,
    ) -> Episode:
        """
        Create an episode and schedule its check-in reminders

        Args:
            title: Episode title
            anchor_date: When it happened, defaults to now
            emotions: Emotion name -> rating (0-5)
            prompts: Prompt question -> response

        Returns:
            The stored episode, with scheduled notification ids recorded
        """
        now = self.clock.now()
        for name, rating in (emotions or {}).items():
            if not 0 <= int(rating) <= 5:
                raise ValueError(f"Emotion rating for {name} out of range: {rating}")

        episode = Episode.create(
            title=title.strip(),
            anchor_date=anchor_date or now,
            emotions=emotions,
            prompts=prompts,
            created_at=now,
        )
        await self.store.insert_episode(episode)
        logger.info(f"Created episode {episode.id} anchored at {episode.anchor_date.isoformat()}")

        working = episode.copy()
        await self.scheduler.schedule_for_episode(working, (), now)
        if working.scheduled_notification_ids:
            await self.store.update_notification_ids(
                episode.id, working.scheduled_notification_ids
            )
            episode = working

        await self.badge.refresh(now)
        emit_episode_created(episode.to_dict())
        self._emit_states(episode, [], now)
        return episode

    async def get_episode(self, episode_id: str) -> Episode:
        episode = await self.store.get_episode(episode_id)
        if episode is None:
            raise EpisodeNotFound(episode_id)
        return episode

    async def list_episodes(self) -> List[Episode]:
        return await self.store.list_episodes()

    async def get_episode_detail(
        self, episode_id: str, now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Episode with its check-ins, notes, windows and derived states"""
        now = now or self.clock.now()
        episode = await self.get_episode(episode_id)
        records = await self.store.list_check_ins(episode_id)
        notes = await self.store.list_notes(episode_id)
        states = self.cache.states_for(episode, records, now)
        windows = self.state_machine.windows_for(episode, now)

        return {
            **episode.to_dict(),
            "checkIns": [record.to_dict() for record in records],
            "notes": [note.to_dict() for note in notes],
            "checkInStates": {kind.value: state.value for kind, state in states.items()},
            "windows": {kind.value: window.to_dict() for kind, window in windows.items()},
            "hasPendingCheckIn": any(s is CheckInState.PENDING for s in states.values()),
        }

    async def list_episode_overviews(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """Episode list entries with the pending indicator"""
        now = now or self.clock.now()
        overviews = []
        for episode in await self.store.list_episodes():
            records = await self.store.list_check_ins(episode.id)
            overview = episode.to_dict()
            overview["hasPendingCheckIn"] = self.cache.has_pending_check_in(episode, records, now)
            overviews.append(overview)
        return overviews

    async def delete_episode(self, episode_id: str) -> None:
        """Delete an episode with its records and notes, then cancel its reminders"""
        episode = await self.get_episode(episode_id)
        await self.store.delete_episode(episode_id)
        self.cache.invalidate(episode_id)

        await self.scheduler.cancel_all(episode)
        await self.badge.refresh()
        emit_episode_deleted(episode_id)
        logger.info(f"Deleted episode {episode_id}")

    # ------------------------------------------------------------------
    # Check-ins
    # ------------------------------------------------------------------

    async def get_check_in_states(
        self, episode_id: str, now: Optional[datetime] = None
    ) -> Dict[CheckInKind, CheckInState]:
        now = now or self.clock.now()
        episode = await self.get_episode(episode_id)
        records = await self.store.list_check_ins(episode_id)
        return self.cache.states_for(episode, records, now)

    async def has_pending_check_in(self, episode_id: str, now: Optional[datetime] = None) -> bool:
        states = await self.get_check_in_states(episode_id, now)
        return any(state is CheckInState.PENDING for state in states.values())

    async def list_pending_check_ins(self, now: Optional[datetime] = None) -> List[PendingCheckIn]:
        """Every open, unanswered check-in, most recent episode first"""
        now = now or self.clock.now()
        pending = []
        for episode in await self.store.list_episodes():
            records = await self.store.list_check_ins(episode.id)
            states = self.cache.states_for(episode, records, now)
            for kind, state in states.items():
                if state is not CheckInState.PENDING:
                    continue
                window = self.state_machine.window(episode, kind, now)
                pending.append(
                    PendingCheckIn(
                        episode=episode,
                        kind=kind,
                        window=window,
                        time_remaining=time_remaining(window, now),
                    )
                )
        return pending

    async def submit_check_in(self, episode_id: str, kind: CheckInKind, text: str) -> CheckInRecord:
        """
        Record a completed check-in and cancel its reminder

        Raises:
            DuplicateCheckIn: A record for this kind already exists, use edit_check_in
            EpisodeNotFound: Unknown episode
        """
        text = _clean_text(text, "Check-in text")
        now = self.clock.now()
        episode = await self.get_episode(episode_id)

        record = CheckInRecord(episode_id=episode.id, kind=kind, text=text, created_at=now)
        await self.store.insert_check_in(record)
        self.cache.invalidate(episode.id)
        logger.info(f"Check-in {kind.value} completed for episode {episode.id}")

        working = episode.copy()
        if await self.scheduler.cancel_for_kind(working, kind):
            await self.store.update_notification_ids(
                episode.id, working.scheduled_notification_ids
            )

        await self._settle(working, now)
        return record

    async def edit_check_in(self, episode_id: str, kind: CheckInKind, text: str) -> CheckInRecord:
        text = _clean_text(text, "Check-in text")
        record = await self._find_check_in(episode_id, kind)
        record.text = text
        record.updated_at = self.clock.now()
        await self.store.update_check_in(record)
        return record

    async def delete_check_in(self, episode_id: str, kind: CheckInKind) -> ReconcileResult:
        """Delete a record; if its window is still ahead the reminder comes back"""
        now = self.clock.now()
        episode = await self.get_episode(episode_id)
        await self.store.delete_check_in(episode_id, kind)
        self.cache.invalidate(episode_id)

        records = await self.store.list_check_ins(episode_id)
        result = await self._reconcile_episode(episode, records, now)
        await self._settle(episode, now, records)
        return result

    async def dismiss_check_in(self, episode_id: str, kind: CheckInKind) -> Episode:
        """Dismiss a kind for good and cancel its reminder; repeating it is a no-op"""
        now = self.clock.now()
        episode = await self.get_episode(episode_id)

        working = episode.copy()
        if not self.state_machine.dismiss_check_in(working, kind):
            return episode

        if not await self.store.add_dismissed_kind(episode_id, kind):
            return await self.get_episode(episode_id)
        self.cache.invalidate(episode_id)
        logger.info(f"Check-in {kind.value} dismissed for episode {episode_id}")

        if await self.scheduler.cancel_for_kind(working, kind):
            await self.store.update_notification_ids(
                episode_id, working.scheduled_notification_ids
            )

        await self._settle(working, now)
        return working

    async def _find_check_in(self, episode_id: str, kind: CheckInKind) -> CheckInRecord:
        await self.get_episode(episode_id)
        for record in await self.store.list_check_ins(episode_id):
            if record.kind is kind:
                return record
        raise CheckInNotFound(episode_id, kind.value)

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    async def add_note(self, episode_id: str, text: str) -> EpisodeNote:
        text = _clean_text(text, "Note text")
        await self.get_episode(episode_id)
        note = EpisodeNote(id=new_id(), episode_id=episode_id, text=text, created_at=self.clock.now())
        await self.store.insert_note(note)
        return note

    async def list_notes(self, episode_id: str) -> List[EpisodeNote]:
        await self.get_episode(episode_id)
        return await self.store.list_notes(episode_id)

    async def edit_note(self, episode_id: str, note_id: str, text: str) -> EpisodeNote:
        text = _clean_text(text, "Note text")
        for note in await self.list_notes(episode_id):
            if note.id == note_id:
                note.text = text
                await self.store.update_note(note)
                return note
        raise RecordNotFound(f"Note not found: {note_id}")

    async def delete_note(self, note_id: str) -> None:
        await self.store.delete_note(note_id)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def request_notification_permission(self) -> bool:
        """Ask for permission; when granted, schedule whatever is still ahead"""
        granted = await self.scheduler.notifier.request_permission()
        logger.info(f"Notification permission {'granted' if granted else 'denied'}")
        if granted:
            await self.refresh()
        return granted

    async def require_notification_permission(self) -> None:
        if not await self.scheduler.notifier.has_permission():
            raise PermissionDenied("Notification permission has not been granted")

    async def reschedule_episode(self, episode_id: str) -> ReconcileResult:
        """Explicitly re-sync one episode's reminders"""
        await self.require_notification_permission()
        now = self.clock.now()
        episode = await self.get_episode(episode_id)
        records = await self.store.list_check_ins(episode_id)
        return await self._reconcile_episode(episode, records, now)

    async def refresh(self, now: Optional[datetime] = None) -> int:
        """
        Foreground refresh: reconcile reminders for every episode and re-push the badge

        Returns:
            The pushed badge count
        """
        now = now or self.clock.now()
        for episode in await self.store.list_episodes():
            records = await self.store.list_check_ins(episode.id)
            await self._reconcile_episode(episode, records, now)
        return await self.badge.refresh(now)

    async def _reconcile_episode(
        self, episode: Episode, records: List[CheckInRecord], now: datetime
    ) -> ReconcileResult:
        working = episode.copy()
        result = await self.scheduler.reconcile(working, records, now)

        # the episode may have been dismissed or deleted while reminders were synced
        latest = await self.store.get_episode(episode.id)
        if latest is None:
            await self.scheduler.cancel_all(working)
            return result
        for kind in latest.dismissed_kinds - working.dismissed_kinds:
            working.dismissed_kinds.add(kind)
            if not await self.scheduler.cancel_for_kind(working, kind):
                continue
            for outcome in (result.scheduled, result.kept):
                if kind in outcome:
                    outcome.remove(kind)
            result.cancelled.append(kind)

        if working.scheduled_notification_ids != latest.scheduled_notification_ids:
            await self.store.update_notification_ids(
                episode.id, working.scheduled_notification_ids
            )
        episode.scheduled_notification_ids = dict(working.scheduled_notification_ids)
        return result

    async def _settle(
        self,
        episode: Episode,
        now: datetime,
        records: Optional[List[CheckInRecord]] = None,
    ) -> None:
        if records is None:
            records = await self.store.list_check_ins(episode.id)
        await self.badge.refresh(now)
        self._emit_states(episode, records, now)

    def _emit_states(self, episode: Episode, records: List[CheckInRecord], now: datetime) -> None:
        states = self.cache.states_for(episode, records, now)
        emit_check_in_state_changed(
            episode.id,
            {kind.value: state.value for kind, state in states.items()},
            any(state is CheckInState.PENDING for state in states.values()),
        )
