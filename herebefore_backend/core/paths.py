"""
Data locations
Everything the backend writes lives next to the active configuration file,
so pointing HEREBEFORE_CONFIG elsewhere relocates database and logs together
"""

from pathlib import Path

from herebefore_backend.config.loader import get_config
from herebefore_backend.core.logger import get_logger

logger = get_logger(__name__)

DEFAULT_DB_NAME = "herebefore.db"


def _mkdir(path: Path) -> Path:
    if not path.is_dir():
        path.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created directory: {path}")
    return path


def get_data_dir() -> Path:
    """Directory holding the active config file, created on demand"""
    return _mkdir(Path(get_config().config_file).expanduser().parent)


def get_db_path() -> Path:
    """
    SQLite file location

    `database.path` wins when set; otherwise herebefore.db in the data directory.
    """
    configured = get_config().get("database.path")
    if configured:
        path = Path(configured).expanduser()
        _mkdir(path.parent)
        return path
    return get_data_dir() / DEFAULT_DB_NAME
