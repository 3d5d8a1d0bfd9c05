"""
Data models for command communication
"""

from .base import BaseModel
from .requests import (
    AddNoteRequest,
    CardColor,
    CardIdRequest,
    CheckInRequest,
    CreateCardRequest,
    CreateEpisodeRequest,
    DeleteNoteRequest,
    EditNoteRequest,
    EpisodeIdRequest,
    ListCardsRequest,
    NotificationTapRequest,
    SubmitCheckInRequest,
    UpdateCardRequest,
)

__all__ = [
    "BaseModel",
    "AddNoteRequest",
    "CardColor",
    "CardIdRequest",
    "CheckInRequest",
    "CreateCardRequest",
    "CreateEpisodeRequest",
    "DeleteNoteRequest",
    "EditNoteRequest",
    "EpisodeIdRequest",
    "ListCardsRequest",
    "NotificationTapRequest",
    "SubmitCheckInRequest",
    "UpdateCardRequest",
]
