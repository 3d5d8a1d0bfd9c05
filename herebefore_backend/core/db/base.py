"""
Base repository - shared SQLite connection handling for all repositories
"""

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from herebefore_backend.core.sqls import queries


class BaseRepository:
    """Opens a short-lived connection per operation"""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    @contextmanager
    def _get_conn(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path, timeout=30)
        conn.row_factory = sqlite3.Row
        conn.execute(queries.PRAGMA_FOREIGN_KEYS_ON)
        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


def to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def from_iso(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None
