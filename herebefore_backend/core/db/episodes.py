"""
Episodes Repository - Handles episodes and their check-in records
"""

import json
import sqlite3
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from herebefore_backend.core.errors import (
    CheckInNotFound,
    DuplicateCheckIn,
    EpisodeNotFound,
    PersistenceFailure,
)
from herebefore_backend.core.logger import get_logger
from herebefore_backend.core.models import CheckInKind, CheckInRecord, Episode
from herebefore_backend.core.sqls import queries

from .base import BaseRepository, from_iso, to_iso

logger = get_logger(__name__)


def _dump_dismissed(kinds: Iterable[CheckInKind]) -> str:
    return json.dumps(sorted(kind.value for kind in kinds))


def _dump_notification_ids(ids: Dict[CheckInKind, str]) -> str:
    return json.dumps({kind.value: ident for kind, ident in ids.items()})


def _episode_params(episode: Episode) -> tuple:
    return (
        episode.title,
        episode.anchor_date.isoformat(),
        json.dumps(episode.emotions),
        json.dumps(episode.prompts),
        _dump_dismissed(episode.dismissed_kinds),
        _dump_notification_ids(episode.scheduled_notification_ids),
    )


def _row_to_episode(row: sqlite3.Row) -> Episode:
    return Episode(
        id=row["id"],
        title=row["title"],
        anchor_date=from_iso(row["anchor_date"]),
        created_at=from_iso(row["created_at"]),
        emotions=json.loads(row["emotions"]) if row["emotions"] else {},
        prompts=json.loads(row["prompts"]) if row["prompts"] else {},
        dismissed_kinds={
            CheckInKind(value) for value in json.loads(row["dismissed_kinds"] or "[]")
        },
        scheduled_notification_ids={
            CheckInKind(kind): ident
            for kind, ident in json.loads(row["scheduled_notification_ids"] or "{}").items()
        },
    )


def _row_to_check_in(row: sqlite3.Row) -> CheckInRecord:
    return CheckInRecord(
        episode_id=row["episode_id"],
        kind=CheckInKind(row["kind"]),
        text=row["text"],
        created_at=from_iso(row["created_at"]),
        updated_at=from_iso(row["updated_at"]),
    )


class EpisodesRepository(BaseRepository):
    """Repository for episodes"""

    def __init__(self, db_path: Path):
        super().__init__(db_path)

    def insert(self, episode: Episode) -> None:
        try:
            with self._get_conn() as conn:
                conn.execute(
                    queries.INSERT_EPISODE,
                    (episode.id, *_episode_params(episode), episode.created_at.isoformat()),
                )
                conn.commit()
            logger.debug(f"Inserted episode: {episode.id}")
        except sqlite3.Error as e:
            logger.error(f"Failed to insert episode {episode.id}: {e}", exc_info=True)
            raise PersistenceFailure(f"Failed to insert episode {episode.id}") from e

    def update(self, episode: Episode) -> None:
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(
                    queries.UPDATE_EPISODE, (*_episode_params(episode), episode.id)
                )
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to update episode {episode.id}: {e}", exc_info=True)
            raise PersistenceFailure(f"Failed to update episode {episode.id}") from e
        if cursor.rowcount == 0:
            raise EpisodeNotFound(episode.id)

    def update_notification_ids(self, episode_id: str, ids: Dict[CheckInKind, str]) -> None:
        """Overwrite only the recorded reminder ids, leaving every other column alone"""
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(
                    queries.UPDATE_EPISODE_NOTIFICATION_IDS,
                    (_dump_notification_ids(ids), episode_id),
                )
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to update reminders of {episode_id}: {e}", exc_info=True)
            raise PersistenceFailure(f"Failed to update episode {episode_id}") from e
        if cursor.rowcount == 0:
            raise EpisodeNotFound(episode_id)

    def add_dismissed_kind(self, episode_id: str, kind: CheckInKind) -> bool:
        """
        Add a kind to the stored dismissals in one transaction

        Returns:
            False if the kind was already dismissed
        """
        try:
            with self._get_conn() as conn:
                conn.execute(queries.BEGIN_IMMEDIATE)
                row = conn.execute(
                    queries.SELECT_EPISODE_DISMISSED_KINDS, (episode_id,)
                ).fetchone()
                if row is None:
                    raise EpisodeNotFound(episode_id)
                dismissed = {CheckInKind(value) for value in json.loads(row[0] or "[]")}
                if kind in dismissed:
                    conn.rollback()
                    return False
                dismissed.add(kind)
                conn.execute(
                    queries.UPDATE_EPISODE_DISMISSED_KINDS,
                    (_dump_dismissed(dismissed), episode_id),
                )
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to dismiss {kind.value} for {episode_id}: {e}", exc_info=True)
            raise PersistenceFailure(f"Failed to update episode {episode_id}") from e
        return True

    def delete(self, episode_id: str) -> None:
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(queries.DELETE_EPISODE, (episode_id,))
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to delete episode {episode_id}: {e}", exc_info=True)
            raise PersistenceFailure(f"Failed to delete episode {episode_id}") from e
        if cursor.rowcount == 0:
            raise EpisodeNotFound(episode_id)
        logger.debug(f"Deleted episode: {episode_id}")

    def get_by_id(self, episode_id: str) -> Optional[Episode]:
        try:
            with self._get_conn() as conn:
                row = conn.execute(queries.SELECT_EPISODE_BY_ID, (episode_id,)).fetchone()
        except sqlite3.Error as e:
            logger.error(f"Failed to get episode {episode_id}: {e}", exc_info=True)
            raise PersistenceFailure(f"Failed to get episode {episode_id}") from e
        return _row_to_episode(row) if row else None

    def get_all(self) -> List[Episode]:
        """All episodes, most recent anchor first"""
        try:
            with self._get_conn() as conn:
                rows = conn.execute(queries.SELECT_EPISODES).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Failed to get episodes: {e}", exc_info=True)
            raise PersistenceFailure("Failed to get episodes") from e
        # anchor dates may carry different offsets, so order on the parsed instant
        episodes = [_row_to_episode(row) for row in rows]
        episodes.sort(key=lambda episode: episode.anchor_date, reverse=True)
        return episodes


class CheckInsRepository(BaseRepository):
    """Repository for check-in records, at most one per (episode, kind)"""

    def __init__(self, db_path: Path):
        super().__init__(db_path)

    def insert(self, record: CheckInRecord) -> None:
        try:
            with self._get_conn() as conn:
                conn.execute(
                    queries.INSERT_CHECK_IN,
                    (
                        record.episode_id,
                        record.kind.value,
                        record.text,
                        record.created_at.isoformat(),
                        to_iso(record.updated_at),
                    ),
                )
                conn.commit()
        except sqlite3.IntegrityError as e:
            if "UNIQUE" in str(e):
                raise DuplicateCheckIn(record.episode_id, record.kind.value) from e
            logger.error(f"Check-in references missing episode {record.episode_id}: {e}")
            raise EpisodeNotFound(record.episode_id) from e
        except sqlite3.Error as e:
            logger.error(
                f"Failed to insert check-in {record.kind.value} for {record.episode_id}: {e}",
                exc_info=True,
            )
            raise PersistenceFailure("Failed to insert check-in") from e
        logger.debug(f"Inserted check-in {record.kind.value} for episode {record.episode_id}")

    def update(self, record: CheckInRecord) -> None:
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(
                    queries.UPDATE_CHECK_IN,
                    (record.text, to_iso(record.updated_at), record.episode_id, record.kind.value),
                )
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to update check-in: {e}", exc_info=True)
            raise PersistenceFailure("Failed to update check-in") from e
        if cursor.rowcount == 0:
            raise CheckInNotFound(record.episode_id, record.kind.value)

    def delete(self, episode_id: str, kind: CheckInKind) -> None:
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(queries.DELETE_CHECK_IN, (episode_id, kind.value))
                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to delete check-in: {e}", exc_info=True)
            raise PersistenceFailure("Failed to delete check-in") from e
        if cursor.rowcount == 0:
            raise CheckInNotFound(episode_id, kind.value)

    def get_by_episode(self, episode_id: str) -> List[CheckInRecord]:
        try:
            with self._get_conn() as conn:
                rows = conn.execute(queries.SELECT_CHECK_INS_BY_EPISODE, (episode_id,)).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Failed to get check-ins for {episode_id}: {e}", exc_info=True)
            raise PersistenceFailure(f"Failed to get check-ins for {episode_id}") from e
        return [_row_to_check_in(row) for row in rows]
