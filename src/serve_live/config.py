"""Server configuration loaded from environment variables."""
from pathlib import Path

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from serve_live.errors import ConfigError


class Settings(BaseSettings):
    """Server configuration loaded from environment variables.

    Command-line arguments, when given, are passed as keyword overrides
    and take precedence over the environment.

    Attributes:
        root: Directory to serve and watch for changes.
        host: Bind address for the HTTP server.
        port: Port number for the HTTP server.
        event_path: Path segment of the event-stream endpoint.
        debounce_ms: Quiet period before a burst of changes is reported.
        subscriber_queue_size: Pending events held per connected client.
        keep_alive_interval: Seconds between event-stream keep-alive comments.
        ignore_patterns_raw: Extra comma-separated glob patterns to ignore.
        debug: Enable debug-level logging.
        json_logs: Render log lines as JSON instead of console output.
    """

    model_config = SettingsConfigDict(
        env_prefix="SERVE_LIVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    root: Path = Field(default_factory=Path.cwd)
    host: str = "0.0.0.0"
    port: int = 3000
    event_path: str = "events"

    debounce_ms: int = Field(default=300, ge=1)
    subscriber_queue_size: int = Field(default=8, ge=1)
    keep_alive_interval: float = 600.0
    ignore_patterns_raw: str = ""

    debug: bool = False
    json_logs: bool = False

    @field_validator("event_path")
    @classmethod
    def _strip_event_path(cls, value: str) -> str:
        path = value.strip().strip("/")
        if not path:
            raise ValueError("event_path must not be empty")
        return path

    @computed_field
    @property
    def address(self) -> str:
        """Listening address as host:port."""
        return f"{self.host}:{self.port}"

    @computed_field
    @property
    def event_route(self) -> str:
        """URL path of the event-stream endpoint.

        Returns:
            Path with exactly one leading slash.
        """
        return "/" + self.event_path

    @computed_field
    @property
    def ignore_patterns(self) -> list[str]:
        """Parse extra ignore patterns from comma-separated string.

        Returns:
            List of glob patterns.
        """
        return [
            pattern.strip()
            for pattern in self.ignore_patterns_raw.split(",")
            if pattern.strip()
        ]

    def resolve_root(self) -> Path:
        """Return the canonical absolute root directory.

        Raises:
            ConfigError: If the root does not exist or is not a directory.
        """
        root = self.root.expanduser()
        if not root.exists():
            raise ConfigError(f"Not a directory: {root} (does not exist)")
        if not root.is_dir():
            raise ConfigError(f"Not a directory: {root}")
        return root.resolve()


def parse_address(value: str) -> tuple[str, int]:
    """Split a host:port listening address.

    Args:
        value: Address such as ``0.0.0.0:3000`` or ``[::1]:8080``.

    Returns:
        Tuple of (host, port).

    Raises:
        ConfigError: If the address is malformed.
    """
    host, sep, port = value.rpartition(":")
    if not sep or not host:
        raise ConfigError(f"Invalid address {value!r}: expected HOST:PORT")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        port_number = int(port)
    except ValueError:
        raise ConfigError(f"Invalid port in address {value!r}") from None
    if not 0 <= port_number <= 65535:
        raise ConfigError(f"Port out of range in address {value!r}")
    return host, port_number
