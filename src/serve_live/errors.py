"""Startup error types."""


class ServeLiveError(Exception):
    """Base class for fatal serve-live errors."""


class ConfigError(ServeLiveError):
    """Raised when the configured root or address is unusable."""


class WatcherError(ServeLiveError):
    """Raised when the filesystem watch cannot be established."""
