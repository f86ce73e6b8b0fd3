"""Filters for filesystem notifications that should not trigger a reload."""

import fnmatch
from pathlib import PurePath

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
)

from serve_live.events.types import (
    AUTO_SAVE_PREFIX,
    TEMP_FILE_NAMES,
    TEMP_FILE_SUFFIXES,
    VCS_METADATA_DIRS,
)

CHANGE_EVENT_TYPES: frozenset[str] = frozenset(
    {
        EVENT_TYPE_CREATED,
        EVENT_TYPE_MODIFIED,
        EVENT_TYPE_DELETED,
        EVENT_TYPE_MOVED,
    }
)


def decode_path(raw: str | bytes) -> str:
    """Return a watchdog event path as text."""
    if isinstance(raw, str):
        return raw
    return bytes(raw).decode("utf-8", errors="replace")


def is_auto_save(path: PurePath) -> bool:
    """Check for an Emacs auto-save file (``.#name``)."""
    return path.name.startswith(AUTO_SAVE_PREFIX)


def is_backup(path: PurePath) -> bool:
    """Check for an editor backup or swap file."""
    name = path.name
    return name in TEMP_FILE_NAMES or name.endswith(TEMP_FILE_SUFFIXES)


def is_vcs_metadata(path: PurePath) -> bool:
    """Check whether any component of the path is a VCS metadata directory."""
    return any(part in VCS_METADATA_DIRS for part in path.parts)


class IgnoreFilter:
    """Decides which changed paths are noise.

    Built-in rules cover editor temp files and git metadata. Extra glob
    patterns are matched against both the basename and the path relative
    to the watch root.

    Attributes:
        patterns: Extra glob patterns supplied by the operator.
    """

    def __init__(self, root: PurePath, patterns: list[str] | None = None) -> None:
        """Initialize the filter.

        Args:
            root: Watch root used to relativize paths.
            patterns: Extra glob patterns to ignore.
        """
        self._root = root
        self._patterns = list(patterns or [])

    @property
    def patterns(self) -> list[str]:
        """Extra glob patterns supplied by the operator."""
        return self._patterns.copy()

    def _relative(self, path: PurePath) -> PurePath:
        try:
            return path.relative_to(self._root)
        except ValueError:
            return path

    def is_ignored(self, path: str | PurePath) -> bool:
        """Check whether a change at this path should be dropped.

        Args:
            path: Absolute or root-relative path of the changed file.

        Returns:
            True if the change is noise.
        """
        rel = self._relative(PurePath(path))
        if is_auto_save(rel) or is_backup(rel) or is_vcs_metadata(rel):
            return True
        rel_str = rel.as_posix()
        return any(
            fnmatch.fnmatch(rel.name, pattern) or fnmatch.fnmatch(rel_str, pattern)
            for pattern in self._patterns
        )

    def accepts(self, event: FileSystemEvent) -> bool:
        """Check whether a watchdog event counts as a change.

        Access-only events (opened, closed) are dropped, as are
        directory modifications, since each child change reports itself.
        Creating, deleting or moving a directory is a change: moving a
        populated directory out of the root yields no per-file events.
        A move is kept when either its source or destination is a path
        that is not ignored.

        Args:
            event: Raw watchdog event.

        Returns:
            True if the event should be reported.
        """
        if event.event_type not in CHANGE_EVENT_TYPES:
            return False
        if event.is_directory and event.event_type == EVENT_TYPE_MODIFIED:
            return False

        paths = [decode_path(event.src_path)]
        dest_path = getattr(event, "dest_path", "")
        if dest_path:
            paths.append(decode_path(dest_path))

        return any(not self.is_ignored(path) for path in paths)
