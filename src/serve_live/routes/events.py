"""Event-stream endpoint for file change notifications."""

from typing import TYPE_CHECKING

from fastapi import APIRouter, Request
from sse_starlette.sse import EventSourceResponse

if TYPE_CHECKING:
    from serve_live.events.hub import NotificationHub

router = APIRouter(tags=["events"])


@router.get("")
async def event_stream(request: Request) -> EventSourceResponse:
    """Stream ``files-changed`` notifications via Server-Sent Events.

    The connection stays open until the client goes away. Keep-alive
    comments are sent at the configured interval.

    Args:
        request: FastAPI request object.

    Returns:
        SSE response stream of change notifications.
    """
    hub: NotificationHub = request.app.state.hub

    return EventSourceResponse(
        hub.create_sse_generator(),
        ping=request.app.state.settings.keep_alive_interval,
        sep="\n",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )
