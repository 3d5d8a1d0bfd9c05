"""Backend runtime container

Wires clock, store, notifier, check-in core and services from configuration
and manages the process-wide instance shared by the CLI and the API.
"""

from __future__ import annotations

from typing import Any, Optional

from herebefore_backend.checkins.cache import CheckInStateCache
from herebefore_backend.checkins.navigation import NavigationRouter
from herebefore_backend.checkins.scheduler import (
    DEFAULT_NOTIFICATION_HOUR,
    DEFAULT_NOTIFICATION_TITLE,
    NotificationScheduler,
)
from herebefore_backend.checkins.state_machine import EpisodeCheckInStateMachine
from herebefore_backend.config.loader import get_config
from herebefore_backend.core.clock import Clock, SystemClock
from herebefore_backend.core.db import DatabaseManager
from herebefore_backend.core.db.store import SQLitePersistenceStore
from herebefore_backend.core.events import emit_pending_navigation
from herebefore_backend.core.logger import get_logger, setup_logging
from herebefore_backend.core.models import PendingNavigation
from herebefore_backend.core.protocols import (
    BadgeSurfaceProtocol,
    NotifierProtocol,
    PersistenceStoreProtocol,
)
from herebefore_backend.services.badge_service import BadgeService
from herebefore_backend.services.card_service import CardService
from herebefore_backend.services.check_in_service import CheckInService

from .coordinator import RefreshCoordinator
from .notifier import InMemoryBadgeSurface, InMemoryNotifier

logger = get_logger(__name__)

_runtime: Optional["Runtime"] = None


def _publish_navigation(pending: Optional[PendingNavigation]) -> None:
    emit_pending_navigation(pending.to_dict() if pending else None)


class Runtime:
    """Everything a request handler needs, built once per process"""

    def __init__(
        self,
        clock: Clock,
        store: PersistenceStoreProtocol,
        notifier: NotifierProtocol,
        badge_surface: BadgeSurfaceProtocol,
        *,
        notification_hour: int = DEFAULT_NOTIFICATION_HOUR,
        notification_minute: int = 0,
        notification_title: str = DEFAULT_NOTIFICATION_TITLE,
        cache_enabled: bool = True,
        refresh_interval: float = 300,
    ):
        self.clock = clock
        self.store = store
        self.notifier = notifier
        self.badge_surface = badge_surface

        self.state_machine = EpisodeCheckInStateMachine(clock.tz)
        self.cache = CheckInStateCache(self.state_machine, enabled=cache_enabled)
        self.scheduler = NotificationScheduler(
            notifier,
            clock,
            self.state_machine,
            hour=notification_hour,
            minute=notification_minute,
            title=notification_title,
        )
        self.router = NavigationRouter(listener=_publish_navigation)
        notifier.set_tap_handler(self.router.handle_notification_response)

        self.badge = BadgeService(store, badge_surface, self.cache, clock)
        self.check_ins = CheckInService(store, self.scheduler, self.cache, self.badge, clock)
        self.cards = CardService(store, clock)
        self.coordinator = RefreshCoordinator(self.check_ins, refresh_interval, notifier)

    @classmethod
    def from_config(cls, config: Optional[Any] = None, db_path: Optional[str] = None) -> "Runtime":
        """Build a runtime with SQLite storage and the in-process notifier"""
        config = config or get_config()
        timezone_name = config.get("clock.timezone", "") or None

        notifier = InMemoryNotifier(
            permission=bool(config.get("notifications.auto_grant_permission", False)),
            auto_grant=True,
        )
        return cls(
            clock=SystemClock(timezone_name),
            store=SQLitePersistenceStore(DatabaseManager(db_path)),
            notifier=notifier,
            badge_surface=InMemoryBadgeSurface(),
            notification_hour=int(config.get("notifications.hour", DEFAULT_NOTIFICATION_HOUR)),
            notification_minute=int(config.get("notifications.minute", 0)),
            notification_title=config.get("notifications.title", DEFAULT_NOTIFICATION_TITLE),
            cache_enabled=bool(config.get("checkins.cache_enabled", True)),
            refresh_interval=float(config.get("checkins.refresh_interval", 300)),
        )


def init_runtime(runtime: Optional[Runtime] = None) -> Runtime:
    """Install a runtime as the process-wide instance, building one from config if needed"""
    global _runtime
    _runtime = runtime or Runtime.from_config()
    logger.info("✓ Runtime initialized")
    return _runtime


def get_runtime() -> Runtime:
    global _runtime
    if _runtime is None:
        return init_runtime()
    return _runtime


async def start_runtime(config_file: Optional[str] = None) -> Runtime:
    """Load configuration, build the runtime and start the refresh loop"""
    config_loader = get_config(config_file)
    config_loader.load()
    if config_file is not None:
        setup_logging()
    logger.info(f"✓ Config file: {config_loader.config_file}")

    runtime = get_runtime()
    await runtime.coordinator.start()
    return runtime


async def shutdown_runtime(*, quiet: bool = False) -> None:
    """Stop the refresh loop and drop the process-wide instance"""
    global _runtime
    if _runtime is None:
        return
    await _runtime.coordinator.stop(quiet=quiet)
    _runtime = None
    if not quiet:
        logger.info("Runtime stopped")
