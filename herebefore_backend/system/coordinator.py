"""
Refresh coordinator
Periodically delivers due reminders, reconciles notifications and re-pushes the badge
"""

import asyncio
from datetime import datetime
from typing import Any, Dict, Optional

from herebefore_backend.core.errors import CheckInError
from herebefore_backend.core.logger import get_logger
from herebefore_backend.services.check_in_service import CheckInService

logger = get_logger(__name__)


class RefreshCoordinator:
    """Runs CheckInService.refresh() on a fixed interval"""

    def __init__(self, service: CheckInService, interval: float = 300, notifier=None):
        """
        Args:
            service: Check-in service to refresh
            interval: Seconds between refresh cycles
            notifier: Optional in-process notifier whose due requests are delivered each cycle
        """
        self.service = service
        self.interval = interval
        self.notifier = notifier

        self.is_running = False
        self.refresh_task: Optional[asyncio.Task] = None
        self.last_error: Optional[str] = None
        self.stats: Dict[str, Any] = {
            "start_time": None,
            "total_refresh_cycles": 0,
            "last_refresh_time": None,
            "last_badge_count": None,
        }

    async def start(self) -> None:
        if self.is_running:
            logger.warning("Refresh coordinator is already running")
            return

        self.is_running = True
        self.stats["start_time"] = datetime.now()
        self.refresh_task = asyncio.create_task(self._refresh_loop())
        logger.info(f"Refresh coordinator started, interval: {self.interval} seconds")

    async def stop(self, *, quiet: bool = False) -> None:
        if not self.is_running:
            self.refresh_task = None
            return

        log = logger.debug if quiet else logger.info
        self.is_running = False
        if self.refresh_task and not self.refresh_task.done():
            self.refresh_task.cancel()
            try:
                await self.refresh_task
            except asyncio.CancelledError:
                pass
        self.refresh_task = None
        log("Refresh coordinator stopped")

    async def run_once(self) -> int:
        """One refresh cycle, returns the pushed badge count"""
        if self.notifier is not None and hasattr(self.notifier, "deliver_due"):
            self.notifier.deliver_due(self.service.clock.now())
        count = await self.service.refresh()
        self.stats["total_refresh_cycles"] += 1
        self.stats["last_refresh_time"] = datetime.now()
        self.stats["last_badge_count"] = count
        return count

    async def _refresh_loop(self) -> None:
        # First cycle runs right away, the rest wait for the interval
        first_iteration = True
        try:
            while self.is_running:
                await asyncio.sleep(0.1 if first_iteration else self.interval)
                if not self.is_running:
                    break
                first_iteration = False

                try:
                    await self.run_once()
                    self.last_error = None
                except CheckInError as e:
                    # retried next cycle
                    self.last_error = str(e)
                    logger.error(f"Refresh cycle failed: {e}", exc_info=True)
        except asyncio.CancelledError:
            logger.debug("Refresh loop cancelled")

    def get_stats(self) -> Dict[str, Any]:
        return {
            "is_running": self.is_running,
            "interval": self.interval,
            "last_error": self.last_error,
            "start_time": self.stats["start_time"].isoformat()
            if self.stats["start_time"]
            else None,
            "total_refresh_cycles": self.stats["total_refresh_cycles"],
            "last_refresh_time": self.stats["last_refresh_time"].isoformat()
            if self.stats["last_refresh_time"]
            else None,
            "last_badge_count": self.stats["last_badge_count"],
        }
