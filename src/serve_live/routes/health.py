"""Health check endpoints for liveness and readiness probes."""
from pathlib import Path
from typing import Literal

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

router = APIRouter(prefix="/_health", tags=["health"])


class LivenessResponse(BaseModel):
    """Response model for liveness probe.

    Attributes:
        status: Always 'alive' when process is running.
    """

    status: Literal["alive"]


class ReadinessCheck(BaseModel):
    """Individual dependency check result.

    Attributes:
        name: Identifier for the dependency being checked.
        status: Result of the check ('ok' or 'failed').
        message: Error details when status is 'failed'.
    """

    name: str
    status: Literal["ok", "failed"]
    message: str | None = None


class ReadinessResponse(BaseModel):
    """Response model for readiness probe.

    Attributes:
        status: Overall readiness ('ready' or 'not_ready').
        subscribers: Number of connected event-stream clients.
        checks: List of individual dependency check results.
    """

    status: Literal["ready", "not_ready"]
    subscribers: int
    checks: list[ReadinessCheck]


def _check_directory(path: Path) -> ReadinessCheck:
    """Verify directory exists and is readable.

    Args:
        path: Absolute path to directory.

    Returns:
        Check result with status and optional error message.
    """
    name = f"dir:{path}"
    try:
        if path.is_dir():
            next(path.iterdir(), None)
            return ReadinessCheck(name=name, status="ok")
        return ReadinessCheck(name=name, status="failed", message="Directory not found")
    except PermissionError as e:
        return ReadinessCheck(name=name, status="failed", message=f"Permission denied: {e}")
    except OSError as e:
        return ReadinessCheck(name=name, status="failed", message=str(e))


def _check_watcher(request: Request) -> ReadinessCheck:
    """Verify the filesystem watcher is running."""
    watcher = getattr(request.app.state, "watcher", None)
    if watcher is not None and watcher.is_running:
        return ReadinessCheck(name="watcher", status="ok")
    return ReadinessCheck(name="watcher", status="failed", message="Watcher not running")


def _check_debouncer(request: Request) -> ReadinessCheck:
    """Verify the task turning changes into notifications is alive."""
    task = getattr(request.app.state, "debounce_task", None)
    if task is not None and not task.done():
        return ReadinessCheck(name="debouncer", status="ok")
    return ReadinessCheck(name="debouncer", status="failed", message="Debouncer not running")


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe endpoint.

    Returns:
        Liveness status response.
    """
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> JSONResponse:
    """Readiness probe endpoint.

    Returns 200 when the served root is readable and both the watcher
    and the debouncer are running, 503 otherwise.

    Returns:
        Readiness status with individual check results.
    """
    checks = [
        _check_directory(request.app.state.root),
        _check_watcher(request),
        _check_debouncer(request),
    ]
    all_ok = all(c.status == "ok" for c in checks)
    hub = getattr(request.app.state, "hub", None)
    response = ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        subscribers=hub.subscriber_count if hub is not None else 0,
        checks=checks,
    )
    code = status.HTTP_200_OK if all_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=response.model_dump(), status_code=code)
