"""
SQLite persistence layer
DatabaseManager owns the schema and exposes one repository per table
"""

import sqlite3
from pathlib import Path
from typing import Optional

from herebefore_backend.core.errors import PersistenceFailure
from herebefore_backend.core.logger import get_logger
from herebefore_backend.core.sqls import queries, schema

from .cards import CardsRepository
from .episodes import CheckInsRepository, EpisodesRepository
from .notes import NotesRepository

logger = get_logger(__name__)


class DatabaseManager:
    """Database manager"""

    def __init__(self, db_path: Optional[str] = None):
        if db_path is None:
            from herebefore_backend.core.paths import get_db_path

            db_path = str(get_db_path())

        self.db_path = Path(db_path)
        self._init_database()

        self.episodes = EpisodesRepository(self.db_path)
        self.check_ins = CheckInsRepository(self.db_path)
        self.notes = NotesRepository(self.db_path)
        self.cards = CardsRepository(self.db_path)

    def _init_database(self):
        """Initialize database"""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._create_tables()
        except sqlite3.Error as e:
            logger.error(f"Database initialization failed: {e}", exc_info=True)
            raise PersistenceFailure(f"Cannot initialize database at {self.db_path}") from e
        logger.info(f"Database initialization completed: {self.db_path}")

    def _create_tables(self):
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute(queries.PRAGMA_FOREIGN_KEYS_ON)
            for table_sql in schema.ALL_TABLES:
                conn.execute(table_sql)
            for index_sql in schema.ALL_INDEXES:
                conn.execute(index_sql)
            conn.commit()
        finally:
            conn.close()


# Global database manager instance
db_manager: Optional[DatabaseManager] = None


def get_db() -> DatabaseManager:
    """Get database manager instance

    The path comes from database.path in the config file, or the default
    location next to it when unset.
    """
    global db_manager
    if db_manager is None:
        db_manager = DatabaseManager()
        logger.info(f"✓ Database manager initialized, path: {db_manager.db_path}")
    return db_manager


def reset_db() -> None:
    """Forget the global manager so the next get_db() reopens from config"""
    global db_manager
    db_manager = None


__all__ = [
    "DatabaseManager",
    "EpisodesRepository",
    "CheckInsRepository",
    "NotesRepository",
    "CardsRepository",
    "get_db",
    "reset_db",
]
