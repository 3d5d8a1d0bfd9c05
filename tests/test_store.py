import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from herebefore_backend.core.db import DatabaseManager
from herebefore_backend.core.errors import (
    CheckInNotFound,
    DuplicateCheckIn,
    EpisodeNotFound,
    PersistenceFailure,
    RecordNotFound,
)
from herebefore_backend.core.models import (
    Card,
    CardType,
    CheckInKind,
    CheckInRecord,
    EpisodeNote,
    new_id,
)

from .conftest import PLUS_TWO, START, UTC, make_episode


def check_in(episode, kind=CheckInKind.H24, text="Calmer now"):
    return CheckInRecord(episode_id=episode.id, kind=kind, text=text, created_at=START)


@pytest.mark.asyncio
async def test_episode_round_trip(store):
    episode = make_episode(datetime(2024, 1, 1, 9, 0, tzinfo=PLUS_TWO))
    episode.emotions = {"anxious": 4, "sad": 2}
    episode.prompts = {"worstCase": "I get fired"}
    episode.dismissed_kinds = {CheckInKind.W2}
    episode.scheduled_notification_ids = {CheckInKind.M3: f"{episode.id}_m3"}

    await store.insert_episode(episode)
    loaded = await store.get_episode(episode.id)

    assert loaded == episode
    assert loaded.anchor_date.utcoffset() == timedelta(hours=2)


@pytest.mark.asyncio
async def test_missing_episode_is_none(store):
    assert await store.get_episode("nope") is None


@pytest.mark.asyncio
async def test_episodes_are_listed_by_instant_not_by_text(store):
    # lexically "2024-01-01T23:30+..." sorts after "2024-01-01T22:00+00:00"
    # but is the earlier instant
    earlier = make_episode(datetime(2024, 1, 1, 23, 30, tzinfo=timezone(timedelta(hours=5))), "earlier")
    later = make_episode(datetime(2024, 1, 1, 22, 0, tzinfo=UTC), "later")
    for episode in (earlier, later):
        await store.insert_episode(episode)

    titles = [episode.title for episode in await store.list_episodes()]

    assert titles == ["later", "earlier"]


@pytest.mark.asyncio
async def test_update_and_delete_unknown_episode(store):
    ghost = make_episode(START)

    with pytest.raises(EpisodeNotFound):
        await store.update_episode(ghost)
    with pytest.raises(EpisodeNotFound):
        await store.delete_episode(ghost.id)
    with pytest.raises(EpisodeNotFound):
        await store.update_notification_ids(ghost.id, {})
    with pytest.raises(EpisodeNotFound):
        await store.add_dismissed_kind(ghost.id, CheckInKind.W2)


@pytest.mark.asyncio
async def test_column_updates_leave_the_other_column_alone(store):
    episode = make_episode(START)
    await store.insert_episode(episode)

    assert await store.add_dismissed_kind(episode.id, CheckInKind.W2) is True
    assert await store.add_dismissed_kind(episode.id, CheckInKind.W2) is False
    await store.update_notification_ids(episode.id, {CheckInKind.M3: "x_m3"})
    assert await store.add_dismissed_kind(episode.id, CheckInKind.H24) is True

    stored = await store.get_episode(episode.id)
    assert stored.dismissed_kinds == {CheckInKind.H24, CheckInKind.W2}
    assert stored.scheduled_notification_ids == {CheckInKind.M3: "x_m3"}
    assert stored.title == episode.title


@pytest.mark.asyncio
async def test_one_check_in_per_kind(store):
    episode = make_episode(START)
    await store.insert_episode(episode)
    await store.insert_check_in(check_in(episode))

    with pytest.raises(DuplicateCheckIn):
        await store.insert_check_in(check_in(episode, text="Again"))

    await store.insert_check_in(check_in(episode, CheckInKind.W2))
    kinds = {record.kind for record in await store.list_check_ins(episode.id)}
    assert kinds == {CheckInKind.H24, CheckInKind.W2}


@pytest.mark.asyncio
async def test_check_in_for_unknown_episode(store):
    with pytest.raises(EpisodeNotFound):
        await store.insert_check_in(check_in(make_episode(START)))


@pytest.mark.asyncio
async def test_check_in_update_and_delete(store):
    episode = make_episode(START)
    await store.insert_episode(episode)
    record = check_in(episode)
    await store.insert_check_in(record)

    record.text = "Edited"
    record.updated_at = START + timedelta(hours=1)
    await store.update_check_in(record)
    assert (await store.list_check_ins(episode.id))[0].text == "Edited"

    await store.delete_check_in(episode.id, CheckInKind.H24)
    assert await store.list_check_ins(episode.id) == []
    with pytest.raises(CheckInNotFound):
        await store.delete_check_in(episode.id, CheckInKind.H24)


@pytest.mark.asyncio
async def test_deleting_an_episode_cascades(store):
    episode = make_episode(START)
    await store.insert_episode(episode)
    await store.insert_check_in(check_in(episode))
    await store.insert_note(EpisodeNote(new_id(), episode.id, "Talked to a friend", START))

    await store.delete_episode(episode.id)

    assert await store.list_check_ins(episode.id) == []
    assert await store.list_notes(episode.id) == []


@pytest.mark.asyncio
async def test_notes(store):
    episode = make_episode(START)
    await store.insert_episode(episode)
    note = EpisodeNote(new_id(), episode.id, "First", START)
    await store.insert_note(note)

    note.text = "First, edited"
    await store.update_note(note)
    assert [n.text for n in await store.list_notes(episode.id)] == ["First, edited"]

    await store.delete_note(note.id)
    with pytest.raises(RecordNotFound):
        await store.delete_note(note.id)
    with pytest.raises(EpisodeNotFound):
        await store.insert_note(EpisodeNote(new_id(), "missing", "Orphan", START))


@pytest.mark.asyncio
async def test_card_image_survives_storage(store):
    image = bytes(range(256))
    card = Card(
        id=new_id(),
        type=CardType.DELIGHT,
        text="",
        color=(0.9, 0.5, 0.1),
        created_at=START,
        image_data=image,
    )

    await store.insert_card(card)
    (loaded,) = await store.list_cards()

    assert loaded.image_data == image
    assert loaded.color == (0.9, 0.5, 0.1)
    assert loaded.date is None

    await store.delete_card(card.id)
    with pytest.raises(RecordNotFound):
        await store.update_card(card)


@pytest.mark.asyncio
async def test_sqlite_errors_become_persistence_failures(store, db):
    conn = sqlite3.connect(db.db_path)
    conn.execute("DROP TABLE check_ins")
    conn.commit()
    conn.close()

    with pytest.raises(PersistenceFailure):
        await store.list_check_ins("anything")


def test_schema_creation_is_idempotent(tmp_path):
    path = tmp_path / "again.db"
    DatabaseManager(str(path))

    manager = DatabaseManager(str(path))

    assert manager.episodes.get_all() == []
