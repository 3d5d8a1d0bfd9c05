"""
Request models for the command surface
"""

from typing import Dict, Optional

from pydantic import AwareDatetime, Field

from herebefore_backend.core.models import CardType, CheckInKind

from .base import BaseModel

# ============================================================================
# Episode Request Models
# ============================================================================


class CreateEpisodeRequest(BaseModel):
    """Request parameters for creating an episode.

    @property title - Episode title.
    @property anchorDate - When the episode happened (ISO format with offset), defaults to now.
    @property emotions - Emotion name -> rating (0-5).
    @property prompts - Prompt question -> response.
    """

    title: str = Field(min_length=1, max_length=200)
    anchor_date: Optional[AwareDatetime] = None
    emotions: Dict[str, int] = Field(default_factory=dict)
    prompts: Dict[str, str] = Field(default_factory=dict)


class EpisodeIdRequest(BaseModel):
    """Request parameters addressing one episode.

    @property episodeId - Episode ID.
    """

    episode_id: str = Field(min_length=1)


# ============================================================================
# Check-in Request Models
# ============================================================================


class CheckInRequest(BaseModel):
    """Request parameters addressing one check-in of an episode.

    @property episodeId - Episode ID.
    @property kind - Check-in kind (h24, w2, m3).
    """

    episode_id: str = Field(min_length=1)
    kind: CheckInKind


class SubmitCheckInRequest(CheckInRequest):
    """Request parameters for submitting or editing a check-in.

    @property text - The written reflection.
    """

    text: str = Field(min_length=1)


# ============================================================================
# Note Request Models
# ============================================================================


class AddNoteRequest(BaseModel):
    episode_id: str = Field(min_length=1)
    text: str = Field(min_length=1)


class EditNoteRequest(BaseModel):
    episode_id: str = Field(min_length=1)
    note_id: str = Field(min_length=1)
    text: str = Field(min_length=1)


class DeleteNoteRequest(BaseModel):
    note_id: str = Field(min_length=1)


# ============================================================================
# Card Request Models
# ============================================================================


class CardColor(BaseModel):
    """RGB color, components in [0, 1]."""

    red: float = Field(ge=0.0, le=1.0)
    green: float = Field(ge=0.0, le=1.0)
    blue: float = Field(ge=0.0, le=1.0)


class CreateCardRequest(BaseModel):
    """Request parameters for creating a resilience card.

    @property type - memory, delight or technique.
    @property text - Card text.
    @property color - Card color.
    @property date - Optional date, memories only.
    @property imageData - Optional base64 image, delights only.
    """

    type: CardType
    text: str = ""
    color: CardColor
    date: Optional[AwareDatetime] = None
    image_data: Optional[str] = None


class UpdateCardRequest(BaseModel):
    card_id: str = Field(min_length=1)
    text: Optional[str] = None
    color: Optional[CardColor] = None
    date: Optional[AwareDatetime] = None


class ListCardsRequest(BaseModel):
    type: Optional[CardType] = None


class CardIdRequest(BaseModel):
    card_id: str = Field(min_length=1)


# ============================================================================
# Notification Request Models
# ============================================================================


class NotificationTapRequest(BaseModel):
    """Inbound notification tap.

    @property episodeId - Episode the notification belongs to.
    @property kind - Check-in kind as sent in the notification payload.
    """

    episode_id: str
    kind: str
