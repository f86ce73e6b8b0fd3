"""Event types passed between the watcher, debouncer and hub."""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Event names written to the event stream."""

    FILES_CHANGED = "files-changed"


TEMP_FILE_SUFFIXES: tuple[str, ...] = (
    ".swp",
    ".swo",
    ".swn",
    ".tmp",
    "~",
)

TEMP_FILE_NAMES: frozenset[str] = frozenset({"4913"})

AUTO_SAVE_PREFIX = ".#"

VCS_METADATA_DIRS: frozenset[str] = frozenset({".git"})


class RawChange(BaseModel):
    """A single filesystem notification that passed the ignore filters.

    The path and kind are kept for logging only; nothing downstream
    depends on which file changed.

    Attributes:
        path: Path of the changed file.
        kind: Watchdog event type (created, modified, deleted, moved).
        timestamp: Time the notification was received (UTC).
    """

    path: str
    kind: str
    timestamp: datetime


class FilesChanged(BaseModel):
    """Coalesced notification that something under the root changed.

    Attributes:
        type: Always ``files-changed``.
        timestamp: Time the quiet period elapsed (UTC).
        coalesced: Number of raw changes folded into this notification.
    """

    type: EventType = EventType.FILES_CHANGED
    timestamp: datetime
    coalesced: int = Field(default=1, ge=1)
