"""
Error taxonomy

I/O failures (permission, persistence, notifier) are recoverable and are
raised as the typed errors below. Broken invariants such as an unknown
check-in kind or a naive datetime raise ValueError/TypeError directly.
"""


class CheckInError(Exception):
    """Base class for recoverable check-in failures"""


class PermissionDenied(CheckInError):
    """Notification permission has not been granted"""


class PersistenceFailure(CheckInError):
    """A store operation failed; no in-memory state was advanced"""


class EpisodeNotFound(PersistenceFailure):
    def __init__(self, episode_id: str):
        super().__init__(f"Episode not found: {episode_id}")
        self.episode_id = episode_id


class CheckInNotFound(PersistenceFailure):
    def __init__(self, episode_id: str, kind: str):
        super().__init__(f"No check-in {kind} for episode {episode_id}")
        self.episode_id = episode_id
        self.kind = kind


class DuplicateCheckIn(PersistenceFailure):
    def __init__(self, episode_id: str, kind: str):
        super().__init__(f"Check-in {kind} already exists for episode {episode_id}")
        self.episode_id = episode_id
        self.kind = kind


class RecordNotFound(PersistenceFailure):
    """A note or card id did not match any stored row"""


class StaleIdentifier(CheckInError):
    """The notifier no longer knows this identifier (already delivered or never registered)"""

    def __init__(self, identifier: str):
        super().__init__(f"Unknown notification identifier: {identifier}")
        self.identifier = identifier
