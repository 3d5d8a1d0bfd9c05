"""
Check-in command handlers
"""

from typing import Any, Dict

from herebefore_backend.core.errors import CheckInError
from herebefore_backend.models.requests import (
    CheckInRequest,
    EpisodeIdRequest,
    SubmitCheckInRequest,
)
from herebefore_backend.system.runtime import get_runtime

from . import api_handler, raise_http_error, success_response


@api_handler(
    body=SubmitCheckInRequest,
    method="POST",
    path="/checkins/submit",
    tags=["checkins"],
    summary="Submit check-in",
    description="Record a completed check-in and cancel its reminder. Fails with 409 if one exists.",
)
async def submit_check_in(body: SubmitCheckInRequest) -> Dict[str, Any]:
    try:
        record = await get_runtime().check_ins.submit_check_in(body.episode_id, body.kind, body.text)
    except (CheckInError, ValueError) as e:
        raise_http_error(e, "Failed to submit check-in")
    return success_response(record.to_dict(), "Check-in saved")


@api_handler(body=SubmitCheckInRequest, method="POST", path="/checkins/edit", tags=["checkins"])
async def edit_check_in(body: SubmitCheckInRequest) -> Dict[str, Any]:
    """Edit the text of an existing check-in"""
    try:
        record = await get_runtime().check_ins.edit_check_in(body.episode_id, body.kind, body.text)
    except (CheckInError, ValueError) as e:
        raise_http_error(e, "Failed to edit check-in")
    return success_response(record.to_dict())


@api_handler(body=CheckInRequest, method="POST", path="/checkins/delete", tags=["checkins"])
async def delete_check_in(body: CheckInRequest) -> Dict[str, Any]:
    """Delete a check-in; its reminder is rescheduled if the window is still ahead"""
    try:
        result = await get_runtime().check_ins.delete_check_in(body.episode_id, body.kind)
    except CheckInError as e:
        raise_http_error(e, "Failed to delete check-in")
    return success_response(
        {"rescheduled": [kind.value for kind in result.scheduled]}, "Check-in deleted"
    )


@api_handler(body=CheckInRequest, method="POST", path="/checkins/dismiss", tags=["checkins"])
async def dismiss_check_in(body: CheckInRequest) -> Dict[str, Any]:
    """Dismiss a check-in and cancel its reminder"""
    try:
        episode = await get_runtime().check_ins.dismiss_check_in(body.episode_id, body.kind)
    except CheckInError as e:
        raise_http_error(e, "Failed to dismiss check-in")
    return success_response(episode.to_dict(), "Check-in dismissed")


@api_handler(body=EpisodeIdRequest, method="POST", path="/checkins/states", tags=["checkins"])
async def get_check_in_states(body: EpisodeIdRequest) -> Dict[str, Any]:
    """Derived state of every check-in kind of an episode"""
    try:
        states = await get_runtime().check_ins.get_check_in_states(body.episode_id)
    except CheckInError as e:
        raise_http_error(e, "Failed to get check-in states")
    return success_response(
        {
            "episodeId": body.episode_id,
            "states": {kind.value: state.value for kind, state in states.items()},
        }
    )


@api_handler(method="GET", path="/checkins/pending", tags=["checkins"])
async def list_pending_check_ins() -> Dict[str, Any]:
    """Every open check-in waiting for the user"""
    try:
        pending = await get_runtime().check_ins.list_pending_check_ins()
    except CheckInError as e:
        raise_http_error(e, "Failed to list pending check-ins")
    return success_response(
        {"checkIns": [item.to_dict() for item in pending], "count": len(pending)}
    )
