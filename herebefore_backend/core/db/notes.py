"""
Episode Notes Repository - Free-form notes attached to an episode
"""

import sqlite3
from pathlib import Path
from typing import List

from herebefore_backend.core.errors import (
    EpisodeNotFound,
    PersistenceFailure,
    RecordNotFound,
)
from herebefore_backend.core.logger import get_logger
from herebefore_backend.core.models import EpisodeNote
from herebefore_backend.core.sqls import queries

from .base import BaseRepository, from_iso

logger = get_logger(__name__)


class NotesRepository(BaseRepository):
    """Repository for episode notes"""

    def __init__(self, db_path: Path):
        super().__init__(db_path)

    def insert(self, note: EpisodeNote) -> None:
        try:
            with self._get_conn() as conn:
                conn.execute(
                    queries.INSERT_NOTE,
                    (note.id, note.episode_id, note.text, note.created_at.isoformat()),
                )
                conn.commit()
        except sqlite3.IntegrityError as e:
            raise EpisodeNotFound(note.episode_id) from e
        except sqlite3.Error as e:
            logger.error(f"Failed to insert note {note.id}: {e}", exc_info=True)
            raise PersistenceFailure(f"Failed to insert note {note.id}") from e

    def update(self, note: EpisodeNote) -> None:
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(queries.UPDATE_NOTE, (note.text, note.id))
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to update note {note.id}: {e}", exc_info=True)
            raise PersistenceFailure(f"Failed to update note {note.id}") from e
        if cursor.rowcount == 0:
            raise RecordNotFound(f"Note not found: {note.id}")

    def delete(self, note_id: str) -> None:
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(queries.DELETE_NOTE, (note_id,))
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to delete note {note_id}: {e}", exc_info=True)
            raise PersistenceFailure(f"Failed to delete note {note_id}") from e
        if cursor.rowcount == 0:
            raise RecordNotFound(f"Note not found: {note_id}")

    def get_by_episode(self, episode_id: str) -> List[EpisodeNote]:
        """Notes for an episode, oldest first"""
        try:
            with self._get_conn() as conn:
                rows = conn.execute(queries.SELECT_NOTES_BY_EPISODE, (episode_id,)).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Failed to get notes for {episode_id}: {e}", exc_info=True)
            raise PersistenceFailure(f"Failed to get notes for {episode_id}") from e

        return [
            EpisodeNote(
                id=row["id"],
                episode_id=row["episode_id"],
                text=row["text"],
                created_at=from_iso(row["created_at"]),
            )
            for row in rows
        ]
