"""
In-process notifier and badge surface

Stand-ins for the OS notification center and app badge. The development
server and the CLI drive them; a native shell would plug its own
implementations of the same protocols into the runtime.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from herebefore_backend.core.errors import StaleIdentifier
from herebefore_backend.core.logger import get_logger
from herebefore_backend.core.models import NotificationPayload
from herebefore_backend.core.protocols import TapHandler

logger = get_logger(__name__)


@dataclass
class ScheduledRequest:
    identifier: str
    fire_at: datetime
    payload: NotificationPayload

    def to_dict(self) -> dict:
        return {
            "identifier": self.identifier,
            "fireAt": self.fire_at.isoformat(),
            "payload": self.payload.to_dict(),
        }


class InMemoryNotifier:
    """Notification center keeping outstanding requests in a dict"""

    def __init__(self, permission: bool = False, auto_grant: bool = True):
        self._permission = permission
        self.auto_grant = auto_grant
        self._outstanding: Dict[str, ScheduledRequest] = {}
        self._delivered: Dict[str, ScheduledRequest] = {}
        self._tap_handler: Optional[TapHandler] = None

    async def has_permission(self) -> bool:
        return self._permission

    async def request_permission(self) -> bool:
        if not self._permission and self.auto_grant:
            self._permission = True
        return self._permission

    def set_permission(self, granted: bool) -> None:
        self._permission = granted

    async def schedule(
        self, identifier: str, fire_at: datetime, payload: NotificationPayload
    ) -> None:
        if not self._permission:
            # the OS drops requests silently without permission
            logger.debug(f"Dropped notification {identifier}: no permission")
            return
        if identifier in self._outstanding:
            logger.debug(f"Replacing outstanding notification {identifier}")
        self._outstanding[identifier] = ScheduledRequest(identifier, fire_at, payload)

    async def cancel(self, identifier: str) -> None:
        if self._outstanding.pop(identifier, None) is None:
            raise StaleIdentifier(identifier)

    async def cancel_all(self, identifiers: Sequence[str]) -> None:
        for identifier in identifiers:
            self._outstanding.pop(identifier, None)

    def set_tap_handler(self, handler: Optional[TapHandler]) -> None:
        self._tap_handler = handler

    @property
    def outstanding(self) -> Dict[str, ScheduledRequest]:
        return dict(self._outstanding)

    @property
    def delivered(self) -> Dict[str, ScheduledRequest]:
        return dict(self._delivered)

    def deliver_due(self, now: datetime) -> List[ScheduledRequest]:
        """Move every request whose fire time has come to the delivered list"""
        now_utc = now.astimezone(timezone.utc)
        due = [
            request
            for request in self._outstanding.values()
            if request.fire_at.astimezone(timezone.utc) <= now_utc
        ]
        for request in sorted(due, key=lambda r: r.fire_at.astimezone(timezone.utc)):
            del self._outstanding[request.identifier]
            self._delivered[request.identifier] = request
            logger.info(f"Delivered notification {request.identifier}: {request.payload.body}")
        return due

    def tap(self, identifier: str) -> None:
        """Simulate the user tapping a delivered notification"""
        request = self._delivered.pop(identifier, None)
        if request is None:
            raise StaleIdentifier(identifier)
        if self._tap_handler is None:
            logger.warning(f"Notification {identifier} tapped but no tap handler registered")
            return
        self._tap_handler(request.payload.to_dict())


class InMemoryBadgeSurface:
    """App badge holding the last pushed count"""

    def __init__(self):
        self.count = 0
        self.history: List[int] = []

    async def set_badge_count(self, count: int) -> None:
        if count < 0:
            raise ValueError(f"Badge count cannot be negative: {count}")
        self.count = count
        self.history.append(count)
