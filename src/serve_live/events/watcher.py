"""Filesystem watcher that feeds raw change signals into an asyncio queue."""

import asyncio
from datetime import UTC, datetime
from pathlib import Path

import structlog
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from serve_live.errors import WatcherError
from serve_live.events.filters import IgnoreFilter, decode_path
from serve_live.events.types import RawChange

logger = structlog.get_logger()


class ChangeHandler(FileSystemEventHandler):
    """Watchdog handler that forwards accepted events to the event loop.

    Runs on the observer thread. Each accepted event becomes a RawChange
    put on the watcher's queue via ``call_soon_threadsafe``. When the
    queue is full the signal is dropped, since a change is already
    pending downstream.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        queue: asyncio.Queue[RawChange],
        ignore: IgnoreFilter,
    ) -> None:
        """Initialize change handler.

        Args:
            loop: Event loop that owns the queue.
            queue: Destination for raw change signals.
            ignore: Filter for paths that never count as changes.
        """
        super().__init__()
        self._loop = loop
        self._queue = queue
        self._ignore = ignore
        self._dropped_count = 0

    @property
    def dropped_signals(self) -> int:
        """Signals discarded because the queue was full."""
        return self._dropped_count

    def _enqueue(self, change: RawChange) -> None:
        try:
            self._queue.put_nowait(change)
        except asyncio.QueueFull:
            self._dropped_count += 1

    def on_any_event(self, event: FileSystemEvent) -> None:
        """Forward a filesystem event unless it is filtered out.

        Args:
            event: Raw watchdog filesystem event.
        """
        try:
            if not self._ignore.accepts(event):
                return

            change = RawChange(
                path=decode_path(event.src_path),
                kind=event.event_type,
                timestamp=datetime.now(UTC),
            )
            logger.debug("watcher_change", path=change.path, kind=change.kind)
            self._loop.call_soon_threadsafe(self._enqueue, change)
        except RuntimeError as e:
            # Event loop closed during shutdown.
            logger.debug("watcher_loop_unavailable", error=str(e))
        except Exception as e:
            logger.error(
                "watcher_event_error",
                error=str(e),
                event_type=getattr(event, "event_type", None),
            )


class ChangeWatcher:
    """Recursive watcher over a single root directory.

    Wraps a watchdog Observer and exposes raw change signals as an
    asyncio queue that the debouncer consumes.

    Attributes:
        root: Directory being watched.
        changes: Queue of raw change signals.
    """

    def __init__(
        self,
        root: Path,
        loop: asyncio.AbstractEventLoop,
        ignore: IgnoreFilter | None = None,
        max_pending: int = 1024,
    ) -> None:
        """Initialize change watcher.

        Args:
            root: Directory to watch recursively.
            loop: Event loop that consumes the change queue.
            ignore: Filter for ignored paths. Defaults to built-in rules only.
            max_pending: Capacity of the raw change queue.
        """
        self._root = root
        self._queue: asyncio.Queue[RawChange] = asyncio.Queue(maxsize=max_pending)
        self._handler = ChangeHandler(loop, self._queue, ignore or IgnoreFilter(root))
        self._observer: BaseObserver | None = None

    @property
    def root(self) -> Path:
        """Directory being watched."""
        return self._root

    @property
    def changes(self) -> asyncio.Queue[RawChange]:
        """Queue of raw change signals."""
        return self._queue

    @property
    def dropped_signals(self) -> int:
        """Signals discarded because the queue was full."""
        return self._handler.dropped_signals

    @property
    def is_running(self) -> bool:
        """True while the observer and all its emitters are alive."""
        observer = self._observer
        if observer is None or not observer.is_alive():
            return False
        return all(emitter.is_alive() for emitter in observer.emitters)

    def start(self) -> None:
        """Start watching and return once the OS watch is active.

        The observer registers its OS-level watches while starting its
        emitter threads, so once this returns without error every change
        under the root is observed.

        Raises:
            WatcherError: If the root is missing or the watch cannot be set up.
        """
        if self._observer is not None:
            return

        if not self._root.exists():
            raise WatcherError(f"Watch path does not exist: {self._root}")
        if not self._root.is_dir():
            raise WatcherError(f"Watch path is not a directory: {self._root}")

        observer = Observer()
        try:
            observer.schedule(self._handler, str(self._root), recursive=True)
            observer.start()
        except OSError as e:
            observer.stop()
            raise WatcherError(f"Cannot watch {self._root}: {e}") from e

        self._observer = observer
        if not self.is_running:
            self._observer = None
            observer.stop()
            observer.join(timeout=5.0)
            raise WatcherError(f"Watcher for {self._root} failed to start")

        logger.info("watcher_started", root=str(self._root))

    def stop(self) -> None:
        """Stop the filesystem observer."""
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5.0)
            self._observer = None
            logger.info("watcher_stopped", root=str(self._root))
