"""Change watching, debouncing and event-stream fan-out."""
from serve_live.events.debouncer import Debouncer
from serve_live.events.filters import IgnoreFilter
from serve_live.events.hub import NotificationHub, Subscriber
from serve_live.events.types import EventType, FilesChanged, RawChange
from serve_live.events.watcher import ChangeWatcher

__all__ = [
    "ChangeWatcher",
    "Debouncer",
    "EventType",
    "FilesChanged",
    "IgnoreFilter",
    "NotificationHub",
    "RawChange",
    "Subscriber",
]
