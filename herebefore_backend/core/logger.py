"""
Logging setup
Root logger configured from the [logging] config section: console output plus
a rotating application log and a rotating error log in the data directory
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Dict, Optional

from herebefore_backend.config.loader import get_config

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"

# Third-party loggers that flood DEBUG output
_NOISY_LOGGERS = ("asyncio", "httpx", "httpcore", "uvicorn.access", "multipart")

_SIZE_UNITS = {"KB": 1024, "MB": 1024**2, "GB": 1024**3}


def parse_size(value) -> int:
    """Parse "10MB" / "512KB" / "1048576" into bytes"""
    text = str(value).strip().upper()
    for unit, factor in _SIZE_UNITS.items():
        if text.endswith(unit):
            return int(float(text[: -len(unit)]) * factor)
    return int(text)


class LoggerManager:
    """Owns the root logger handlers for the backend process"""

    def __init__(self):
        self._loggers: Dict[str, logging.Logger] = {}
        self.logs_dir: Optional[Path] = None
        self._setup_root_logger()

    def _setup_root_logger(self):
        config = get_config()

        level_name = str(config.get("logging.level", "INFO")).upper()
        level = getattr(logging, level_name, logging.INFO)
        self.logs_dir = Path(
            config.get("logging.logs_dir", "") or Path(config.config_file).parent / "logs"
        ).expanduser()
        max_bytes = parse_size(config.get("logging.max_file_size", "10MB"))
        backup_count = int(config.get("logging.backup_count", 5))

        self.logs_dir.mkdir(parents=True, exist_ok=True)

        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.handlers.clear()

        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        root_logger.addHandler(console_handler)

        file_format = logging.Formatter(FILE_FORMAT)
        for filename, handler_level in (("herebefore.log", logging.DEBUG), ("error.log", logging.ERROR)):
            handler = logging.handlers.RotatingFileHandler(
                self.logs_dir / filename,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            handler.setLevel(handler_level)
            handler.setFormatter(file_format)
            root_logger.addHandler(handler)

        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(max(level, logging.WARNING))

    def get_logger(self, name: str) -> logging.Logger:
        if name not in self._loggers:
            self._loggers[name] = logging.getLogger(name)
        return self._loggers[name]


# Created on first get_logger() call; config has to be importable first
_logger_manager: Optional[LoggerManager] = None


def get_logger(name: str) -> logging.Logger:
    global _logger_manager

    if _logger_manager is None:
        _logger_manager = LoggerManager()

    return _logger_manager.get_logger(name)


def setup_logging() -> None:
    """(Re)apply the [logging] config, e.g. after switching config files"""
    global _logger_manager

    if _logger_manager is None:
        _logger_manager = LoggerManager()
    else:
        _logger_manager._setup_root_logger()
