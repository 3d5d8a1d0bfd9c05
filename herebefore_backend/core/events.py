"""
In-process event bus
Used to tell the presentation layer that check-in state changed and it should re-render
"""

from typing import Any, Dict, Optional

from pydantic import RootModel

from herebefore_backend.core._event_state import EventCallback, event_state
from herebefore_backend.core.logger import get_logger

logger = get_logger(__name__)

ALL_EVENTS = "*"


class _RawEventPayload(RootModel[Dict[str, Any]]):
    """Wraps event payload so only JSON-compatible data crosses the bus."""


def subscribe(event_name: str, callback: EventCallback) -> None:
    """Register callback(event_name, payload); use "*" to receive every event"""
    event_state.subscribers[event_name].append(callback)
    logger.debug(f"[events] Subscribed to {event_name}: {callback!r}")


def unsubscribe(event_name: str, callback: EventCallback) -> None:
    callbacks = event_state.subscribers.get(event_name, [])
    if callback in callbacks:
        callbacks.remove(callback)


def clear_subscribers() -> None:
    event_state.subscribers.clear()


def _emit(event_name: str, payload: Dict[str, Any]) -> bool:
    """Deliver an event to its subscribers, return whether anyone received it"""
    data = _RawEventPayload(payload).model_dump(mode="json")
    callbacks = list(event_state.subscribers.get(event_name, [])) + list(
        event_state.subscribers.get(ALL_EVENTS, [])
    )
    if not callbacks:
        logger.debug(f"[events] No subscribers for event: {event_name}")
        return False

    for callback in callbacks:
        try:
            callback(event_name, data)
        except Exception:
            logger.error(f"[events] Subscriber failed for event: {event_name}", exc_info=True)
    return True


def emit_episode_created(episode_data: Dict[str, Any]) -> bool:
    """
    Send "episode created" event

    Args:
        episode_data: Episode dictionary (Episode.to_dict())

    Returns:
        True if at least one subscriber received it
    """
    payload = {
        "type": "episode_created",
        "data": episode_data,
        "timestamp": episode_data.get("createdAt"),
    }
    return _emit("episode-created", payload)


def emit_episode_deleted(episode_id: str) -> bool:
    payload = {"type": "episode_deleted", "data": {"id": episode_id}}
    return _emit("episode-deleted", payload)


def emit_check_in_state_changed(
    episode_id: str, states: Dict[str, str], has_pending: bool
) -> bool:
    """
    Send "check-in state changed" event

    Args:
        episode_id: Episode ID
        states: Check-in kind -> derived state
        has_pending: Whether the episode now has a pending check-in
    """
    payload = {
        "type": "check_in_state_changed",
        "data": {
            "episodeId": episode_id,
            "states": states,
            "hasPendingCheckIn": has_pending,
        },
    }
    success = _emit("check-in-state-changed", payload)
    if success:
        logger.debug(f"Check-in state change sent: {episode_id}")
    return success


def emit_badge_count_changed(count: int) -> bool:
    payload = {"type": "badge_count_changed", "data": {"count": count}}
    return _emit("badge-count-changed", payload)


def emit_pending_navigation(navigation_data: Optional[Dict[str, Any]]) -> bool:
    """Send "pending navigation" event (None once the intent has been consumed)"""
    payload = {"type": "pending_navigation", "data": navigation_data}
    return _emit("pending-navigation", payload)
