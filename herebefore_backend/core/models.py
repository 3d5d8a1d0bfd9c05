"""
Data model definitions
Contains core data models like Episode, CheckInRecord, EpisodeNote and Card
"""

import base64
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Set, Tuple


class CheckInKind(Enum):
    """Check-in kind enumeration: the three fixed reflection delays"""

    H24 = "h24"
    W2 = "w2"
    M3 = "m3"

    @property
    def offset_days(self) -> int:
        return _KIND_PARAMS[self][0]

    @property
    def window_length_hours(self) -> int:
        return _KIND_PARAMS[self][1]

    @property
    def display_name(self) -> str:
        return _KIND_PARAMS[self][2]

    @property
    def prompt(self) -> str:
        """Question shown while writing the check-in"""
        return _KIND_PARAMS[self][3]

    def notification_body(self, episode_title: str) -> str:
        if self is CheckInKind.H24:
            return "How are you feeling today? Yesterday's episode check-in is ready."
        if self is CheckInKind.W2:
            return f'2-week check-in: How do you feel about "{episode_title}" now?'
        return f'3-month perspective: Time to reflect on "{episode_title}"'


# offset days, window length hours, display name, prompt
_KIND_PARAMS: Dict[CheckInKind, Tuple[int, int, str, str]] = {
    CheckInKind.H24: (
        1,
        24,
        "24 Hour Check-in",
        "How are you feeling compared to yesterday? Does this match what you expected?",
    ),
    CheckInKind.W2: (
        14,
        24,
        "2 Week Check-in",
        "Looking back at this episode after 2 weeks, how do you feel about it now?",
    ),
    CheckInKind.M3: (
        90,
        120,
        "3 Month Check-in",
        "After 3 months, what's your perspective on this episode? "
        "Has it affected you as much as you thought it would?",
    ),
}


class WindowStatus(Enum):
    """Where `now` falls relative to a check-in window"""

    NOT_YET_OPEN = "not_yet_open"
    OPEN = "open"
    EXPIRED = "expired"


class CheckInState(Enum):
    """Derived per-kind state, listed in precedence order"""

    COMPLETED = "completed"
    DISMISSED = "dismissed"
    PENDING = "pending"
    UPCOMING = "upcoming"
    CLOSED = "closed"


class CardType(Enum):
    """Resilience card type enumeration"""

    MEMORY = "memory"
    DELIGHT = "delight"
    TECHNIQUE = "technique"


def new_id() -> str:
    return uuid.uuid4().hex


def _require_aware(value: datetime, name: str) -> datetime:
    if value is None:
        raise ValueError(f"{name} is required")
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware: {value!r}")
    return value


@dataclass(frozen=True)
class CheckInWindow:
    """Window boundaries for one kind, with the status at evaluation time"""

    kind: CheckInKind
    status: WindowStatus
    window_start: datetime
    window_end: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "status": self.status.value,
            "windowStart": self.window_start.isoformat(),
            "windowEnd": self.window_end.isoformat(),
        }


@dataclass
class Episode:
    """Episode data model - anchor of a three-stage reflection cycle"""

    id: str
    title: str
    anchor_date: datetime
    created_at: datetime
    emotions: Dict[str, int] = field(default_factory=dict)
    prompts: Dict[str, str] = field(default_factory=dict)
    dismissed_kinds: Set[CheckInKind] = field(default_factory=set)
    scheduled_notification_ids: Dict[CheckInKind, str] = field(default_factory=dict)

    def __post_init__(self):
        _require_aware(self.anchor_date, "anchor_date")
        _require_aware(self.created_at, "created_at")

    @classmethod
    def create(
        cls,
        title: str,
        anchor_date: datetime,
        emotions: Optional[Dict[str, int]] = None,
        prompts: Optional[Dict[str, str]] = None,
        created_at: Optional[datetime] = None,
    ) -> "Episode":
        return cls(
            id=new_id(),
            title=title,
            anchor_date=anchor_date,
            created_at=created_at or anchor_date,
            emotions=dict(emotions or {}),
            prompts=dict(prompts or {}),
        )

    def copy(self) -> "Episode":
        """Independent copy, so a failed write never leaks into the live object"""
        return Episode(
            id=self.id,
            title=self.title,
            anchor_date=self.anchor_date,
            created_at=self.created_at,
            emotions=dict(self.emotions),
            prompts=dict(self.prompts),
            dismissed_kinds=set(self.dismissed_kinds),
            scheduled_notification_ids=dict(self.scheduled_notification_ids),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "id": self.id,
            "title": self.title,
            "anchorDate": self.anchor_date.isoformat(),
            "createdAt": self.created_at.isoformat(),
            "emotions": dict(self.emotions),
            "prompts": dict(self.prompts),
            "dismissedKinds": sorted(kind.value for kind in self.dismissed_kinds),
            "scheduledNotificationIds": {
                kind.value: identifier
                for kind, identifier in self.scheduled_notification_ids.items()
            },
        }


@dataclass
class CheckInRecord:
    """Completed reflection for one (episode, kind) pair"""

    episode_id: str
    kind: CheckInKind
    text: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "episodeId": self.episode_id,
            "kind": self.kind.value,
            "text": self.text,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class EpisodeNote:
    """Free-form note attached to an episode"""

    id: str
    episode_id: str
    text: str
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "episodeId": self.episode_id,
            "text": self.text,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass
class Card:
    """Resilience card: a memory, a delight or a technique"""

    id: str
    type: CardType
    text: str
    color: Tuple[float, float, float]
    created_at: datetime
    date: Optional[datetime] = None  # memories only
    image_data: Optional[bytes] = None  # delights only

    def to_dict(self) -> Dict[str, Any]:
        red, green, blue = self.color
        return {
            "id": self.id,
            "type": self.type.value,
            "text": self.text,
            "color": {"red": red, "green": green, "blue": blue},
            "createdAt": self.created_at.isoformat(),
            "date": self.date.isoformat() if self.date else None,
            "imageData": base64.b64encode(self.image_data).decode("ascii")
            if self.image_data
            else None,
        }


@dataclass(frozen=True)
class NotificationPayload:
    """Content delivered with a scheduled check-in reminder"""

    title: str
    body: str
    episode_id: str
    kind: CheckInKind

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "body": self.body,
            "episodeId": self.episode_id,
            "kind": self.kind.value,
        }


@dataclass(frozen=True)
class PendingNavigation:
    """Where the UI should go after a notification tap"""

    episode_id: str
    kind: CheckInKind

    @property
    def id(self) -> str:
        return f"{self.episode_id}_{self.kind.value}"

    def to_dict(self) -> Dict[str, Any]:
        return {"episodeId": self.episode_id, "kind": self.kind.value}
