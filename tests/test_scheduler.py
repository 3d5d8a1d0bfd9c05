from datetime import datetime, timedelta

import pytest

from herebefore_backend.checkins.scheduler import NotificationScheduler, notification_id
from herebefore_backend.core.clock import FixedClock
from herebefore_backend.core.models import CheckInKind, CheckInRecord
from herebefore_backend.system.notifier import InMemoryNotifier

from .conftest import START, UTC, make_episode


@pytest.fixture
def scheduler(notifier, clock):
    return NotificationScheduler(notifier, clock)


def test_notification_id_is_derived_from_episode_and_kind():
    assert notification_id("abc", CheckInKind.W2) == "abc_w2"
    assert notification_id("abc", CheckInKind.W2) == notification_id("abc", CheckInKind.W2)


def test_rejects_impossible_notification_time(notifier, clock):
    with pytest.raises(ValueError):
        NotificationScheduler(notifier, clock, hour=24)


@pytest.mark.asyncio
async def test_new_episode_gets_three_reminders_at_nine(scheduler, notifier):
    episode = make_episode(START)

    result = await scheduler.schedule_for_episode(episode)

    assert result == {kind: notification_id(episode.id, kind) for kind in CheckInKind}
    assert episode.scheduled_notification_ids == result
    fire_times = {req.payload.kind: req.fire_at for req in notifier.outstanding.values()}
    assert fire_times == {
        CheckInKind.H24: datetime(2024, 1, 11, 9, 0, tzinfo=UTC),
        CheckInKind.W2: datetime(2024, 1, 24, 9, 0, tzinfo=UTC),
        CheckInKind.M3: datetime(2024, 4, 9, 9, 0, tzinfo=UTC),
    }


@pytest.mark.asyncio
async def test_scheduling_twice_does_not_duplicate(scheduler, notifier):
    episode = make_episode(START)

    first = await scheduler.schedule_for_episode(episode)
    second = await scheduler.schedule_for_episode(episode)

    assert first == second
    assert len(notifier.outstanding) == 3


@pytest.mark.asyncio
async def test_payload_content(scheduler, notifier):
    episode = make_episode(START, title="Missed flight")
    await scheduler.schedule_for_episode(episode)

    payload = notifier.outstanding[notification_id(episode.id, CheckInKind.W2)].payload

    assert payload.title == "Episode Check-in"
    assert payload.body == '2-week check-in: How do you feel about "Missed flight" now?'
    assert payload.to_dict() == {
        "title": "Episode Check-in",
        "body": payload.body,
        "episodeId": episode.id,
        "kind": "w2",
    }


@pytest.mark.asyncio
async def test_without_permission_nothing_is_scheduled(scheduler, notifier):
    notifier.set_permission(False)
    episode = make_episode(START)

    assert await scheduler.schedule_for_episode(episode) == {}
    assert episode.scheduled_notification_ids == {}
    assert notifier.outstanding == {}


@pytest.mark.asyncio
async def test_old_episode_gets_no_reminders(scheduler, notifier):
    episode = make_episode(START - timedelta(days=100))

    result = await scheduler.schedule_for_episode(episode)

    assert result == {kind: None for kind in CheckInKind}
    assert notifier.outstanding == {}


@pytest.mark.asyncio
async def test_three_month_reminder_inside_its_window_before_nine(notifier):
    anchor = datetime(2024, 1, 1, 15, 0, tzinfo=UTC)
    clock = FixedClock(datetime(2024, 3, 31, 8, 0, tzinfo=UTC))
    scheduler = NotificationScheduler(notifier, clock)
    episode = make_episode(anchor)

    result = await scheduler.schedule_for_episode(episode)

    assert result[CheckInKind.H24] is None
    assert result[CheckInKind.W2] is None
    assert result[CheckInKind.M3] == notification_id(episode.id, CheckInKind.M3)


@pytest.mark.asyncio
async def test_three_month_reminder_is_skipped_once_nine_has_passed(notifier):
    clock = FixedClock(datetime(2024, 4, 1, 10, 0, tzinfo=UTC))
    scheduler = NotificationScheduler(notifier, clock)

    result = await scheduler.schedule_for_episode(make_episode(datetime(2024, 1, 1, 15, 0, tzinfo=UTC)))

    assert result[CheckInKind.M3] is None


@pytest.mark.asyncio
async def test_past_h24_reminder_moves_to_the_next_day(notifier):
    clock = FixedClock(datetime(2024, 1, 11, 10, 0, tzinfo=UTC))
    scheduler = NotificationScheduler(notifier, clock)
    episode = make_episode(datetime(2024, 1, 10, 8, 0, tzinfo=UTC))

    result = await scheduler.schedule_for_episode(episode)

    identifier = result[CheckInKind.H24]
    assert identifier is not None
    assert notifier.outstanding[identifier].fire_at == datetime(2024, 1, 12, 9, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_past_w2_reminder_is_not_moved(notifier):
    clock = FixedClock(datetime(2024, 1, 24, 10, 0, tzinfo=UTC))
    scheduler = NotificationScheduler(notifier, clock)

    result = await scheduler.schedule_for_episode(make_episode(datetime(2024, 1, 10, 8, 0, tzinfo=UTC)))

    assert result[CheckInKind.W2] is None


@pytest.mark.asyncio
async def test_completed_and_dismissed_kinds_are_skipped(scheduler, notifier):
    episode = make_episode(START)
    episode.dismissed_kinds.add(CheckInKind.W2)
    records = [CheckInRecord(episode.id, CheckInKind.H24, "Done", START)]

    result = await scheduler.schedule_for_episode(episode, records)

    assert result[CheckInKind.H24] is None
    assert result[CheckInKind.W2] is None
    assert list(notifier.outstanding) == [notification_id(episode.id, CheckInKind.M3)]


@pytest.mark.asyncio
async def test_cancel_for_kind(scheduler, notifier):
    episode = make_episode(START)
    await scheduler.schedule_for_episode(episode)

    assert await scheduler.cancel_for_kind(episode, CheckInKind.H24) is True
    assert CheckInKind.H24 not in episode.scheduled_notification_ids
    assert notification_id(episode.id, CheckInKind.H24) not in notifier.outstanding

    assert await scheduler.cancel_for_kind(episode, CheckInKind.H24) is False


@pytest.mark.asyncio
async def test_cancelling_a_delivered_reminder_counts_as_success(scheduler, notifier):
    episode = make_episode(START)
    await scheduler.schedule_for_episode(episode)
    notifier.deliver_due(datetime(2024, 1, 12, tzinfo=UTC))

    assert await scheduler.cancel_for_kind(episode, CheckInKind.H24) is True
    assert CheckInKind.H24 not in episode.scheduled_notification_ids


@pytest.mark.asyncio
async def test_cancel_all(scheduler, notifier):
    episode = make_episode(START)
    await scheduler.schedule_for_episode(episode)

    cancelled = await scheduler.cancel_all(episode)

    assert len(cancelled) == 3
    assert episode.scheduled_notification_ids == {}
    assert notifier.outstanding == {}


@pytest.mark.asyncio
async def test_reconcile_cancels_stale_and_keeps_the_rest(scheduler, notifier):
    episode = make_episode(START)
    await scheduler.schedule_for_episode(episode)
    records = [CheckInRecord(episode.id, CheckInKind.H24, "Done", START)]

    result = await scheduler.reconcile(episode, records)

    assert result.cancelled == [CheckInKind.H24]
    assert result.kept == [CheckInKind.W2, CheckInKind.M3]
    assert result.scheduled == []
    assert len(notifier.outstanding) == 2

    again = await scheduler.reconcile(episode, records)
    assert not again.changed


@pytest.mark.asyncio
async def test_reconcile_schedules_once_permission_arrives(scheduler, notifier):
    notifier.set_permission(False)
    episode = make_episode(START)
    await scheduler.schedule_for_episode(episode)

    notifier.set_permission(True)
    result = await scheduler.reconcile(episode)

    assert result.scheduled == list(CheckInKind)
    assert len(notifier.outstanding) == 3


@pytest.mark.asyncio
async def test_reconcile_reissues_recorded_reminders(scheduler, clock):
    episode = make_episode(START)
    await scheduler.schedule_for_episode(episode)
    # a notifier that lost its requests, as after a process restart
    fresh = InMemoryNotifier(permission=True)

    result = await NotificationScheduler(fresh, clock).reconcile(episode)

    assert result.kept == list(CheckInKind)
    assert not result.changed
    assert set(fresh.outstanding) == set(episode.scheduled_notification_ids.values())
