"""Pytest configuration and fixtures."""

import sys
from collections.abc import Iterator
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from fastapi.testclient import TestClient
from sse_starlette import sse

from serve_live.app import create_app
from serve_live.config import Settings


def _reset_app_status() -> None:
    status = getattr(sse, "AppStatus", None)
    if status is None:
        return
    if hasattr(status, "should_exit_event"):
        status.should_exit_event = None
    status.should_exit = False


@pytest.fixture(autouse=True)
def reset_sse_app_status() -> Iterator[None]:
    """Reset sse-starlette's process-wide exit state between tests.

    Each test server runs on its own event loop, and the exit event is
    bound to the loop that first awaited it.
    """
    _reset_app_status()
    yield
    _reset_app_status()


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """Create a small site to serve."""
    (tmp_path / "index.html").write_text("<h1>home</h1>")
    (tmp_path / "style.css").write_text("h1 { color: red; }")
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "index.html").write_text("<h1>docs</h1>")
    return tmp_path


@pytest.fixture
def settings(site: Path) -> Settings:
    """Create test settings serving the temporary site."""
    return Settings(
        root=site,
        host="127.0.0.1",
        port=3000,
        debounce_ms=100,
        debug=True,
    )


@pytest.fixture
def client(settings: Settings) -> TestClient:
    """Create test client with configured app.

    The lifespan does not run, so no watcher is started.
    """
    app = create_app(settings)
    return TestClient(app)
