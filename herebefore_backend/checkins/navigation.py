"""
Notification tap -> pending navigation intent
"""

from typing import Any, Callable, Mapping, Optional

from herebefore_backend.core.logger import get_logger
from herebefore_backend.core.models import CheckInKind, PendingNavigation

logger = get_logger(__name__)

NavigationListener = Callable[[Optional[PendingNavigation]], None]

_EPISODE_KEYS = ("episodeId", "episode_id", "episodeID")
_KIND_KEYS = ("kind", "checkInType", "check_in_type")


def _first(payload: Mapping[str, Any], keys) -> Any:
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


class NavigationRouter:
    """
    Single slot holding at most one pending navigation intent

    A newer tap overwrites an unconsumed one. consume() hands the intent to
    exactly one reader.
    """

    def __init__(self, listener: Optional[NavigationListener] = None):
        self._pending: Optional[PendingNavigation] = None
        self._listener = listener

    def set_listener(self, listener: Optional[NavigationListener]) -> None:
        self._listener = listener

    def _notify(self) -> None:
        if self._listener is not None:
            self._listener(self._pending)

    def handle_tap(self, episode_id: str, kind: CheckInKind) -> PendingNavigation:
        if not isinstance(kind, CheckInKind):
            raise TypeError(f"kind must be a CheckInKind, got {kind!r}")
        if self._pending is not None:
            logger.debug(f"Replacing unconsumed navigation {self._pending.id}")
        self._pending = PendingNavigation(episode_id=episode_id, kind=kind)
        logger.info(f"Pending navigation set: episode {episode_id}, {kind.display_name}")
        self._notify()
        return self._pending

    def handle_notification_response(
        self, payload: Mapping[str, Any]
    ) -> Optional[PendingNavigation]:
        """Parse a tap payload from the notifier; malformed payloads are ignored"""
        episode_id = _first(payload, _EPISODE_KEYS)
        raw_kind = _first(payload, _KIND_KEYS)
        if not isinstance(episode_id, str) or not episode_id or not isinstance(raw_kind, str):
            logger.warning(f"Ignoring malformed notification payload: {dict(payload)!r}")
            return None
        try:
            kind = CheckInKind(raw_kind)
        except ValueError:
            logger.warning(f"Ignoring notification payload with unknown kind: {raw_kind!r}")
            return None
        return self.handle_tap(episode_id, kind)

    def peek(self) -> Optional[PendingNavigation]:
        return self._pending

    def consume(self) -> Optional[PendingNavigation]:
        pending, self._pending = self._pending, None
        if pending is not None:
            self._notify()
        return pending
