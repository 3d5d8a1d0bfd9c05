"""
Type protocols for the external collaborators

The check-in core talks to persistence, the OS notification subsystem and
the badge display only through these interfaces. All of them are I/O
boundaries and are therefore async.
"""

from datetime import datetime
from typing import Callable, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from herebefore_backend.core.models import (
    Card,
    CheckInKind,
    CheckInRecord,
    Episode,
    EpisodeNote,
    NotificationPayload,
)

TapHandler = Callable[[dict], None]


@runtime_checkable
class NotifierProtocol(Protocol):
    """Local notification capability"""

    async def has_permission(self) -> bool:
        """Whether notifications may currently be scheduled"""
        ...

    async def request_permission(self) -> bool:
        """Show the OS permission prompt, return whether it was granted"""
        ...

    async def schedule(
        self, identifier: str, fire_at: datetime, payload: NotificationPayload
    ) -> None:
        """Fire-and-forget; replaces any outstanding request with the same id"""
        ...

    async def cancel(self, identifier: str) -> None:
        """Cancel an outstanding request, may raise StaleIdentifier"""
        ...

    async def cancel_all(self, identifiers: Sequence[str]) -> None:
        """Cancel several outstanding requests"""
        ...

    def set_tap_handler(self, handler: Optional[TapHandler]) -> None:
        """Register the receiver of inbound tap payloads"""
        ...


@runtime_checkable
class BadgeSurfaceProtocol(Protocol):
    """OS badge-count display"""

    async def set_badge_count(self, count: int) -> None:
        ...


@runtime_checkable
class PersistenceStoreProtocol(Protocol):
    """Abstract object store for episodes, check-in records, notes and cards

    Every method raises PersistenceFailure (or a subclass) on failure.
    """

    async def insert_episode(self, episode: Episode) -> None:
        ...

    async def update_episode(self, episode: Episode) -> None:
        ...

    async def update_notification_ids(
        self, episode_id: str, ids: Dict[CheckInKind, str]
    ) -> None:
        """Replace only the episode's recorded reminder ids"""
        ...

    async def add_dismissed_kind(self, episode_id: str, kind: CheckInKind) -> bool:
        """Atomically add a dismissal, return False if it was already recorded"""
        ...

    async def delete_episode(self, episode_id: str) -> None:
        """Delete an episode together with its check-in records and notes"""
        ...

    async def get_episode(self, episode_id: str) -> Optional[Episode]:
        ...

    async def list_episodes(self) -> List[Episode]:
        """All episodes, most recent anchor first"""
        ...

    async def insert_check_in(self, record: CheckInRecord) -> None:
        """Insert a record, raising DuplicateCheckIn if (episode, kind) exists"""
        ...

    async def update_check_in(self, record: CheckInRecord) -> None:
        ...

    async def delete_check_in(self, episode_id: str, kind: CheckInKind) -> None:
        ...

    async def list_check_ins(self, episode_id: str) -> List[CheckInRecord]:
        ...

    async def insert_note(self, note: EpisodeNote) -> None:
        ...

    async def update_note(self, note: EpisodeNote) -> None:
        ...

    async def delete_note(self, note_id: str) -> None:
        ...

    async def list_notes(self, episode_id: str) -> List[EpisodeNote]:
        ...

    async def insert_card(self, card: Card) -> None:
        ...

    async def update_card(self, card: Card) -> None:
        ...

    async def delete_card(self, card_id: str) -> None:
        ...

    async def list_cards(self) -> List[Card]:
        """All cards, newest first"""
        ...
