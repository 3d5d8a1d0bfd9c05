"""
Episode command handlers - episodes and their notes
"""

from typing import Any, Dict

from herebefore_backend.core.errors import CheckInError
from herebefore_backend.models.requests import (
    AddNoteRequest,
    CreateEpisodeRequest,
    DeleteNoteRequest,
    EditNoteRequest,
    EpisodeIdRequest,
)
from herebefore_backend.system.runtime import get_runtime

from . import api_handler, raise_http_error, success_response

# ============ Episode Interfaces ============


@api_handler(
    body=CreateEpisodeRequest,
    method="POST",
    path="/episodes/create",
    tags=["episodes"],
    summary="Create episode",
    description="Store a new episode and schedule its check-in reminders",
)
async def create_episode(body: CreateEpisodeRequest) -> Dict[str, Any]:
    try:
        episode = await get_runtime().check_ins.create_episode(
            title=body.title,
            anchor_date=body.anchor_date,
            emotions=body.emotions,
            prompts=body.prompts,
        )
    except (CheckInError, ValueError) as e:
        raise_http_error(e, "Failed to create episode")
    return success_response(episode.to_dict(), "Episode created")


@api_handler(method="GET", path="/episodes", tags=["episodes"], summary="List episodes")
async def list_episodes() -> Dict[str, Any]:
    """List episodes with their pending check-in indicator, latest first"""
    try:
        overviews = await get_runtime().check_ins.list_episode_overviews()
    except CheckInError as e:
        raise_http_error(e, "Failed to list episodes")
    return success_response({"episodes": overviews, "count": len(overviews)})


@api_handler(body=EpisodeIdRequest, method="POST", path="/episodes/get", tags=["episodes"])
async def get_episode(body: EpisodeIdRequest) -> Dict[str, Any]:
    """Get an episode with check-ins, notes, windows and states"""
    try:
        detail = await get_runtime().check_ins.get_episode_detail(body.episode_id)
    except CheckInError as e:
        raise_http_error(e, "Failed to get episode")
    return success_response(detail)


@api_handler(body=EpisodeIdRequest, method="POST", path="/episodes/delete", tags=["episodes"])
async def delete_episode(body: EpisodeIdRequest) -> Dict[str, Any]:
    """Delete an episode and cancel its reminders"""
    try:
        await get_runtime().check_ins.delete_episode(body.episode_id)
    except CheckInError as e:
        raise_http_error(e, "Failed to delete episode")
    return success_response({"id": body.episode_id}, "Episode deleted")


# ============ Note Interfaces ============


@api_handler(body=AddNoteRequest, method="POST", path="/episodes/notes/add", tags=["episodes"])
async def add_note(body: AddNoteRequest) -> Dict[str, Any]:
    """Attach a note to an episode"""
    try:
        note = await get_runtime().check_ins.add_note(body.episode_id, body.text)
    except (CheckInError, ValueError) as e:
        raise_http_error(e, "Failed to add note")
    return success_response(note.to_dict())


@api_handler(body=EpisodeIdRequest, method="POST", path="/episodes/notes/list", tags=["episodes"])
async def list_notes(body: EpisodeIdRequest) -> Dict[str, Any]:
    try:
        notes = await get_runtime().check_ins.list_notes(body.episode_id)
    except CheckInError as e:
        raise_http_error(e, "Failed to list notes")
    return success_response({"notes": [note.to_dict() for note in notes], "count": len(notes)})


@api_handler(body=EditNoteRequest, method="POST", path="/episodes/notes/edit", tags=["episodes"])
async def edit_note(body: EditNoteRequest) -> Dict[str, Any]:
    try:
        note = await get_runtime().check_ins.edit_note(body.episode_id, body.note_id, body.text)
    except (CheckInError, ValueError) as e:
        raise_http_error(e, "Failed to edit note")
    return success_response(note.to_dict())


@api_handler(body=DeleteNoteRequest, method="POST", path="/episodes/notes/delete", tags=["episodes"])
async def delete_note(body: DeleteNoteRequest) -> Dict[str, Any]:
    try:
        await get_runtime().check_ins.delete_note(body.note_id)
    except CheckInError as e:
        raise_http_error(e, "Failed to delete note")
    return success_response({"id": body.note_id}, "Note deleted")
