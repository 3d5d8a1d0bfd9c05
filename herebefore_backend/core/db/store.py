"""
Async persistence store backed by SQLite

The repositories are blocking; every call is pushed onto a worker thread
so the event loop that drives scheduling and the API never stalls on disk.
"""

import asyncio
from typing import Dict, List, Optional

from herebefore_backend.core.models import (
    Card,
    CheckInKind,
    CheckInRecord,
    Episode,
    EpisodeNote,
)

from . import DatabaseManager


class SQLitePersistenceStore:
    """PersistenceStoreProtocol implementation over DatabaseManager"""

    def __init__(self, db: Optional[DatabaseManager] = None):
        self.db = db or DatabaseManager()

    # Episodes
    async def insert_episode(self, episode: Episode) -> None:
        await asyncio.to_thread(self.db.episodes.insert, episode)

    async def update_episode(self, episode: Episode) -> None:
        await asyncio.to_thread(self.db.episodes.update, episode)

    async def update_notification_ids(
        self, episode_id: str, ids: Dict[CheckInKind, str]
    ) -> None:
        await asyncio.to_thread(self.db.episodes.update_notification_ids, episode_id, dict(ids))

    async def add_dismissed_kind(self, episode_id: str, kind: CheckInKind) -> bool:
        return await asyncio.to_thread(self.db.episodes.add_dismissed_kind, episode_id, kind)

    async def delete_episode(self, episode_id: str) -> None:
        # check_ins and episode_notes cascade
        await asyncio.to_thread(self.db.episodes.delete, episode_id)

    async def get_episode(self, episode_id: str) -> Optional[Episode]:
        return await asyncio.to_thread(self.db.episodes.get_by_id, episode_id)

    async def list_episodes(self) -> List[Episode]:
        return await asyncio.to_thread(self.db.episodes.get_all)

    # Check-ins
    async def insert_check_in(self, record: CheckInRecord) -> None:
        await asyncio.to_thread(self.db.check_ins.insert, record)

    async def update_check_in(self, record: CheckInRecord) -> None:
        await asyncio.to_thread(self.db.check_ins.update, record)

    async def delete_check_in(self, episode_id: str, kind: CheckInKind) -> None:
        await asyncio.to_thread(self.db.check_ins.delete, episode_id, kind)

    async def list_check_ins(self, episode_id: str) -> List[CheckInRecord]:
        return await asyncio.to_thread(self.db.check_ins.get_by_episode, episode_id)

    # Notes
    async def insert_note(self, note: EpisodeNote) -> None:
        await asyncio.to_thread(self.db.notes.insert, note)

    async def update_note(self, note: EpisodeNote) -> None:
        await asyncio.to_thread(self.db.notes.update, note)

    async def delete_note(self, note_id: str) -> None:
        await asyncio.to_thread(self.db.notes.delete, note_id)

    async def list_notes(self, episode_id: str) -> List[EpisodeNote]:
        return await asyncio.to_thread(self.db.notes.get_by_episode, episode_id)

    # Cards
    async def insert_card(self, card: Card) -> None:
        await asyncio.to_thread(self.db.cards.insert, card)

    async def update_card(self, card: Card) -> None:
        await asyncio.to_thread(self.db.cards.update, card)

    async def delete_card(self, card_id: str) -> None:
        await asyncio.to_thread(self.db.cards.delete, card_id)

    async def list_cards(self) -> List[Card]:
        return await asyncio.to_thread(self.db.cards.get_all)
