"""
Notification command handlers - permission, taps, navigation, badge and refresh
"""

from typing import Any, Dict

from herebefore_backend.core.errors import CheckInError
from herebefore_backend.models.requests import EpisodeIdRequest, NotificationTapRequest
from herebefore_backend.system.runtime import get_runtime

from . import api_handler, raise_http_error, success_response


@api_handler(method="GET", path="/notifications/permission", tags=["notifications"])
async def check_notification_permission() -> Dict[str, Any]:
    """Whether reminders may currently be scheduled"""
    granted = await get_runtime().notifier.has_permission()
    return success_response({"granted": granted})


@api_handler(method="POST", path="/notifications/permission/request", tags=["notifications"])
async def request_notification_permission() -> Dict[str, Any]:
    """Ask for notification permission; schedules pending reminders when granted"""
    try:
        granted = await get_runtime().check_ins.request_notification_permission()
    except CheckInError as e:
        raise_http_error(e, "Failed to request notification permission")
    return success_response({"granted": granted})


@api_handler(
    body=EpisodeIdRequest, method="POST", path="/notifications/reschedule", tags=["notifications"]
)
async def reschedule_notifications(body: EpisodeIdRequest) -> Dict[str, Any]:
    """Re-sync one episode's reminders, 403 without permission"""
    try:
        result = await get_runtime().check_ins.reschedule_episode(body.episode_id)
    except CheckInError as e:
        raise_http_error(e, "Failed to reschedule notifications")
    return success_response(
        {
            "scheduled": [kind.value for kind in result.scheduled],
            "kept": [kind.value for kind in result.kept],
            "cancelled": [kind.value for kind in result.cancelled],
        }
    )


@api_handler(body=NotificationTapRequest, method="POST", path="/notifications/tap", tags=["notifications"])
async def handle_notification_tap(body: NotificationTapRequest) -> Dict[str, Any]:
    """Inbound notification tap from the shell; malformed kinds are ignored"""
    pending = get_runtime().router.handle_notification_response(
        {"episodeId": body.episode_id, "kind": body.kind}
    )
    return success_response(pending.to_dict() if pending else None)


@api_handler(method="POST", path="/navigation/consume", tags=["notifications"])
async def consume_pending_navigation() -> Dict[str, Any]:
    """Take the pending navigation intent, if any; a second call returns nothing"""
    pending = get_runtime().router.consume()
    return success_response(pending.to_dict() if pending else None)


@api_handler(method="GET", path="/badge", tags=["notifications"])
async def get_badge_count() -> Dict[str, Any]:
    try:
        count = await get_runtime().badge.pending_count()
    except CheckInError as e:
        raise_http_error(e, "Failed to compute badge count")
    return success_response({"count": count})


@api_handler(method="POST", path="/refresh", tags=["notifications"])
async def refresh() -> Dict[str, Any]:
    """Foreground refresh: reconcile all reminders and re-push the badge"""
    try:
        count = await get_runtime().coordinator.run_once()
    except CheckInError as e:
        raise_http_error(e, "Refresh failed")
    return success_response({"badgeCount": count})


@api_handler(method="GET", path="/system/stats", tags=["notifications"])
async def get_system_stats() -> Dict[str, Any]:
    runtime = get_runtime()
    return success_response(
        {
            "coordinator": runtime.coordinator.get_stats(),
            "cacheEntries": len(runtime.cache),
        }
    )
