from datetime import datetime, timedelta

import pytest

from herebefore_backend.checkins.scheduler import notification_id
from herebefore_backend.core.db.store import SQLitePersistenceStore
from herebefore_backend.core.errors import (
    CheckInNotFound,
    DuplicateCheckIn,
    EpisodeNotFound,
    PermissionDenied,
    PersistenceFailure,
    RecordNotFound,
)
from herebefore_backend.core.models import CardType, CheckInKind, CheckInState
from herebefore_backend.system.notifier import InMemoryNotifier
from herebefore_backend.system.runtime import Runtime

from .conftest import START, UTC

# the h24 window of an episode anchored a day before START is open at START
YESTERDAY = START - timedelta(days=1)


class FailingCheckInStore(SQLitePersistenceStore):
    async def insert_check_in(self, record):
        raise PersistenceFailure("disk full")


class InterleavingStore(SQLitePersistenceStore):
    """Runs `interleave` once, inside the next list_check_ins call"""

    interleave = None

    async def list_check_ins(self, episode_id):
        interleave, self.interleave = self.interleave, None
        if interleave is not None:
            await interleave()
        return await super().list_check_ins(episode_id)


def event_names(events):
    return [name for name, _ in events]


@pytest.mark.asyncio
async def test_create_schedules_reminders_and_persists_their_ids(service, store, notifier, events):
    episode = await service.create_episode("Argument at work", YESTERDAY, emotions={"angry": 4})

    expected = {kind: notification_id(episode.id, kind) for kind in CheckInKind}
    assert episode.scheduled_notification_ids == expected
    assert (await store.get_episode(episode.id)).scheduled_notification_ids == expected
    assert set(notifier.outstanding) == set(expected.values())
    assert "episode-created" in event_names(events)
    assert "check-in-state-changed" in event_names(events)


@pytest.mark.asyncio
async def test_create_defaults_anchor_to_now(service):
    episode = await service.create_episode("  Just now  ")

    assert episode.anchor_date == START
    assert episode.title == "Just now"
    states = await service.get_check_in_states(episode.id)
    assert states == {kind: CheckInState.UPCOMING for kind in CheckInKind}


@pytest.mark.asyncio
async def test_create_rejects_out_of_range_emotions(service):
    with pytest.raises(ValueError):
        await service.create_episode("Too much", emotions={"sad": 6})


@pytest.mark.asyncio
async def test_submit_completes_and_cancels_the_reminder(service, store, notifier, badge_surface):
    episode = await service.create_episode("Argument at work", YESTERDAY)
    assert badge_surface.count == 1

    record = await service.submit_check_in(episode.id, CheckInKind.H24, "  Calmer than expected ")

    assert record.text == "Calmer than expected"
    assert notification_id(episode.id, CheckInKind.H24) not in notifier.outstanding
    stored = await store.get_episode(episode.id)
    assert CheckInKind.H24 not in stored.scheduled_notification_ids
    assert badge_surface.count == 0
    assert (await service.get_check_in_states(episode.id))[CheckInKind.H24] is CheckInState.COMPLETED


@pytest.mark.asyncio
async def test_submit_twice_is_rejected(service):
    episode = await service.create_episode("Argument at work", YESTERDAY)
    await service.submit_check_in(episode.id, CheckInKind.H24, "First")

    with pytest.raises(DuplicateCheckIn):
        await service.submit_check_in(episode.id, CheckInKind.H24, "Second")


@pytest.mark.asyncio
async def test_submit_requires_text(service):
    episode = await service.create_episode("Argument at work", YESTERDAY)

    with pytest.raises(ValueError):
        await service.submit_check_in(episode.id, CheckInKind.H24, "   ")


@pytest.mark.asyncio
async def test_submit_for_unknown_episode(service):
    with pytest.raises(EpisodeNotFound):
        await service.submit_check_in("missing", CheckInKind.H24, "Hello")


@pytest.mark.asyncio
async def test_failed_write_changes_nothing(db, clock, notifier, badge_surface):
    runtime = Runtime(clock, FailingCheckInStore(db), notifier, badge_surface)
    service = runtime.check_ins
    episode = await service.create_episode("Argument at work", YESTERDAY)

    with pytest.raises(PersistenceFailure):
        await service.submit_check_in(episode.id, CheckInKind.H24, "Lost")

    assert notification_id(episode.id, CheckInKind.H24) in notifier.outstanding
    stored = await runtime.store.get_episode(episode.id)
    assert CheckInKind.H24 in stored.scheduled_notification_ids
    assert await service.has_pending_check_in(episode.id)


@pytest.mark.asyncio
async def test_edit_check_in(service, clock):
    episode = await service.create_episode("Argument at work", YESTERDAY)
    await service.submit_check_in(episode.id, CheckInKind.H24, "First")
    clock.advance(minutes=5)

    edited = await service.edit_check_in(episode.id, CheckInKind.H24, "Second thoughts")

    assert edited.text == "Second thoughts"
    assert edited.updated_at == clock.now()
    with pytest.raises(CheckInNotFound):
        await service.edit_check_in(episode.id, CheckInKind.W2, "Nothing here")


@pytest.mark.asyncio
async def test_deleting_a_check_in_brings_the_reminder_back(service, notifier):
    episode = await service.create_episode("Argument at work", YESTERDAY)
    await service.submit_check_in(episode.id, CheckInKind.H24, "Done")

    result = await service.delete_check_in(episode.id, CheckInKind.H24)

    assert result.scheduled == [CheckInKind.H24]
    assert notification_id(episode.id, CheckInKind.H24) in notifier.outstanding
    assert await service.has_pending_check_in(episode.id)


@pytest.mark.asyncio
async def test_dismiss_cancels_and_is_idempotent(service, store, notifier):
    episode = await service.create_episode("Argument at work", YESTERDAY)

    dismissed = await service.dismiss_check_in(episode.id, CheckInKind.W2)
    again = await service.dismiss_check_in(episode.id, CheckInKind.W2)

    assert dismissed.dismissed_kinds == {CheckInKind.W2}
    assert again.dismissed_kinds == {CheckInKind.W2}
    assert notification_id(episode.id, CheckInKind.W2) not in notifier.outstanding
    stored = await store.get_episode(episode.id)
    assert CheckInKind.W2 not in stored.scheduled_notification_ids
    states = await service.get_check_in_states(episode.id)
    assert states[CheckInKind.W2] is CheckInState.DISMISSED


@pytest.mark.asyncio
async def test_dismiss_during_refresh_survives(db, clock, notifier, badge_surface):
    store = InterleavingStore(db)
    service = Runtime(clock, store, notifier, badge_surface).check_ins
    episode = await service.create_episode("Argument at work", YESTERDAY)
    # refresh has already read the episode when the dismissal lands
    store.interleave = lambda: service.dismiss_check_in(episode.id, CheckInKind.W2)

    await service.refresh()

    stored = await store.get_episode(episode.id)
    assert stored.dismissed_kinds == {CheckInKind.W2}
    assert set(stored.scheduled_notification_ids) == {CheckInKind.H24, CheckInKind.M3}
    assert set(notifier.outstanding) == {
        notification_id(episode.id, CheckInKind.H24),
        notification_id(episode.id, CheckInKind.M3),
    }


@pytest.mark.asyncio
async def test_restarted_runtime_restores_reminders(db, clock, service, badge_surface):
    episode = await service.create_episode("Argument at work", YESTERDAY)
    fresh = InMemoryNotifier(permission=True)
    restarted = Runtime(clock, SQLitePersistenceStore(db), fresh, badge_surface)

    await restarted.coordinator.run_once()

    assert set(fresh.outstanding) == {notification_id(episode.id, kind) for kind in CheckInKind}
    stored = await restarted.store.get_episode(episode.id)
    assert stored.scheduled_notification_ids == episode.scheduled_notification_ids


@pytest.mark.asyncio
async def test_delete_episode_cancels_everything(service, notifier, events):
    episode = await service.create_episode("Argument at work", YESTERDAY)
    await service.add_note(episode.id, "Went for a walk")

    await service.delete_episode(episode.id)

    assert notifier.outstanding == {}
    assert "episode-deleted" in event_names(events)
    with pytest.raises(EpisodeNotFound):
        await service.get_episode(episode.id)
    with pytest.raises(EpisodeNotFound):
        await service.delete_episode(episode.id)


@pytest.mark.asyncio
async def test_pending_list_and_badge(service, badge_surface, clock):
    first = await service.create_episode("Argument at work", YESTERDAY)
    await service.create_episode("Good news", START)

    pending = await service.list_pending_check_ins()

    assert [(p.episode.id, p.kind) for p in pending] == [(first.id, CheckInKind.H24)]
    assert pending[0].time_remaining == "2 hours remaining"
    assert pending[0].to_dict()["displayName"] == "24 Hour Check-in"

    clock.set(datetime(2024, 1, 11, 12, 0, tzinfo=UTC))
    assert await service.refresh() == 1
    assert badge_surface.count == 1
    pending = await service.list_pending_check_ins()
    assert [p.episode.title for p in pending] == ["Good news"]


@pytest.mark.asyncio
async def test_overviews_and_detail(service):
    episode = await service.create_episode("Argument at work", YESTERDAY)
    await service.create_episode("Good news", START)

    overviews = await service.list_episode_overviews()
    detail = await service.get_episode_detail(episode.id)

    assert [o["hasPendingCheckIn"] for o in overviews] == [False, True]
    assert detail["checkInStates"] == {"h24": "pending", "w2": "upcoming", "m3": "upcoming"}
    assert detail["windows"]["h24"]["status"] == "open"
    assert detail["hasPendingCheckIn"] is True


@pytest.mark.asyncio
async def test_permission_grant_schedules_existing_episodes(db, clock, badge_surface):
    notifier = InMemoryNotifier(permission=False)
    runtime = Runtime(clock, SQLitePersistenceStore(db), notifier, badge_surface)
    service = runtime.check_ins
    episode = await service.create_episode("Argument at work", YESTERDAY)
    assert episode.scheduled_notification_ids == {}

    with pytest.raises(PermissionDenied):
        await service.reschedule_episode(episode.id)

    assert await service.request_notification_permission() is True
    assert len(notifier.outstanding) == 3
    stored = await runtime.store.get_episode(episode.id)
    assert set(stored.scheduled_notification_ids) == set(CheckInKind)


@pytest.mark.asyncio
async def test_denied_permission_stays_denied(db, clock, badge_surface):
    notifier = InMemoryNotifier(permission=False, auto_grant=False)
    service = Runtime(clock, SQLitePersistenceStore(db), notifier, badge_surface).check_ins

    assert await service.request_notification_permission() is False
    assert notifier.outstanding == {}


@pytest.mark.asyncio
async def test_notes(service):
    episode = await service.create_episode("Argument at work", YESTERDAY)
    note = await service.add_note(episode.id, "Went for a walk")

    await service.edit_note(episode.id, note.id, "Went for a long walk")

    assert [n.text for n in await service.list_notes(episode.id)] == ["Went for a long walk"]
    with pytest.raises(RecordNotFound):
        await service.edit_note(episode.id, "missing", "Text")
    with pytest.raises(ValueError):
        await service.add_note(episode.id, "")

    await service.delete_note(note.id)
    assert await service.list_notes(episode.id) == []


@pytest.mark.asyncio
async def test_refresh_coordinator_cycle(runtime):
    await runtime.check_ins.create_episode("Argument at work", YESTERDAY)

    count = await runtime.coordinator.run_once()

    assert count == 1
    assert runtime.coordinator.get_stats()["total_refresh_cycles"] == 1


class TestCards:
    @pytest.mark.asyncio
    async def test_memory_card_with_date(self, runtime):
        cards = runtime.cards
        card = await cards.create_card(CardType.MEMORY, "Graduation", (0.2, 0.4, 0.6), date=START)

        assert (await cards.get_card(card.id)).date == START
        assert await cards.list_cards(CardType.DELIGHT) == []

    @pytest.mark.asyncio
    async def test_type_specific_fields(self, runtime):
        cards = runtime.cards
        with pytest.raises(ValueError):
            await cards.create_card(CardType.TECHNIQUE, "Breathe", (0, 0, 0), date=START)
        with pytest.raises(ValueError):
            await cards.create_card(CardType.MEMORY, "Photo", (0, 0, 0), image_data=b"\x89PNG")
        with pytest.raises(ValueError):
            await cards.create_card(CardType.TECHNIQUE, "  ", (0, 0, 0))
        with pytest.raises(ValueError):
            await cards.create_card(CardType.TECHNIQUE, "Breathe", (0, 1.5, 0))

    @pytest.mark.asyncio
    async def test_update_and_delete(self, runtime):
        cards = runtime.cards
        card = await cards.create_card(CardType.DELIGHT, "", (1, 1, 1), image_data=b"\x89PNG")

        updated = await cards.update_card(card.id, text="Sunset", color=(0.5, 0.5, 0.5))
        assert (updated.text, updated.color) == ("Sunset", (0.5, 0.5, 0.5))
        with pytest.raises(ValueError):
            await cards.update_card(card.id, date=START)

        await cards.delete_card(card.id)
        with pytest.raises(RecordNotFound):
            await cards.get_card(card.id)
