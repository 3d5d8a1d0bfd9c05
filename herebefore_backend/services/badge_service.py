"""
Badge service
Pushes the number of pending check-ins across all episodes to the badge surface
"""

from datetime import datetime
from typing import Optional

from herebefore_backend.checkins.cache import CheckInStateCache
from herebefore_backend.core.clock import Clock
from herebefore_backend.core.events import emit_badge_count_changed
from herebefore_backend.core.logger import get_logger
from herebefore_backend.core.models import CheckInState
from herebefore_backend.core.protocols import BadgeSurfaceProtocol, PersistenceStoreProtocol

logger = get_logger(__name__)


class BadgeService:
    """Recomputes and re-pushes the pending check-in count"""

    def __init__(
        self,
        store: PersistenceStoreProtocol,
        surface: BadgeSurfaceProtocol,
        cache: CheckInStateCache,
        clock: Clock,
    ):
        self.store = store
        self.surface = surface
        self.cache = cache
        self.clock = clock
        self.last_count: Optional[int] = None

    async def pending_count(self, now: Optional[datetime] = None) -> int:
        """Sum of pending kinds over every episode"""
        now = now or self.clock.now()
        count = 0
        for episode in await self.store.list_episodes():
            records = await self.store.list_check_ins(episode.id)
            states = self.cache.states_for(episode, records, now)
            count += sum(1 for state in states.values() if state is CheckInState.PENDING)
        return count

    async def refresh(self, now: Optional[datetime] = None) -> int:
        count = await self.pending_count(now)
        await self.surface.set_badge_count(count)
        if count != self.last_count:
            logger.debug(f"Badge count changed: {self.last_count} -> {count}")
            emit_badge_count_changed(count)
        self.last_count = count
        return count
