"""Request logging middleware."""
import time

import structlog
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = structlog.get_logger()

EXCLUDED_PATHS = frozenset({
    "/_health/live",
    "/_health/ready",
})


class RequestLoggingMiddleware:
    """ASGI middleware that logs each request when its response starts.

    Logging at response start rather than completion keeps long-lived
    event streams visible. Health check endpoints are not logged.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Forward the request and log its status line.

        Args:
            scope: ASGI connection scope.
            receive: ASGI receive channel.
            send: ASGI send channel.
        """
        if scope["type"] != "http" or scope["path"] in EXCLUDED_PATHS:
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                duration_ms = (time.perf_counter() - start) * 1000
                client = scope.get("client")
                logger.info(
                    "http_request",
                    method=scope["method"],
                    path=scope["path"],
                    status=message["status"],
                    duration_ms=round(duration_ms, 2),
                    client=client[0] if client else None,
                )
            await send(message)

        await self.app(scope, receive, send_wrapper)
