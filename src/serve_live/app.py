"""FastAPI application factory and lifespan management."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from serve_live.config import Settings
from serve_live.errors import WatcherError
from serve_live.events import ChangeWatcher, Debouncer, IgnoreFilter, NotificationHub
from serve_live.middleware.logging import RequestLoggingMiddleware
from serve_live.routes import events, health, script

logger = structlog.get_logger()


def _log_debouncer_exit(task: asyncio.Task[None]) -> None:
    """Report a debouncer task that ended with an error."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("debouncer_failed", error=str(exc), exc_info=exc)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle events.

    Starts the filesystem watcher and the debouncer task. The server
    only begins accepting connections after this startup phase returns,
    so the watch is active before any client can connect. A watcher
    failure aborts startup.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    hub: NotificationHub = app.state.hub
    logger.info("server_startup", address=settings.address, root=str(app.state.root))

    watcher = ChangeWatcher(
        root=app.state.root,
        loop=asyncio.get_running_loop(),
        ignore=IgnoreFilter(app.state.root, settings.ignore_patterns),
    )
    debouncer = Debouncer(watcher.changes, hub, quiet_ms=settings.debounce_ms)

    try:
        watcher.start()
    except WatcherError as e:
        logger.error("watcher_failed", root=str(app.state.root), error=str(e))
        raise
    app.state.watcher = watcher
    app.state.debouncer = debouncer

    debounce_task = asyncio.create_task(debouncer.run())
    debounce_task.add_done_callback(_log_debouncer_exit)
    app.state.debounce_task = debounce_task

    try:
        yield
    finally:
        debounce_task.cancel()
        # A crash was already logged by the done callback.
        await asyncio.gather(debounce_task, return_exceptions=True)

        watcher.stop()
        await hub.shutdown()
        logger.info("server_shutdown")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Factory function to create configured FastAPI application.

    Args:
        settings: Configuration instance. Creates default if None.

    Returns:
        Configured FastAPI application.

    Raises:
        ConfigError: If the configured root is not a directory.
    """
    if settings is None:
        settings = Settings()

    root = settings.resolve_root()

    app = FastAPI(
        title="serve-live",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.root = root
    app.state.hub = NotificationHub(queue_size=settings.subscriber_queue_size)

    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health.router)
    app.include_router(script.router)
    app.include_router(events.router, prefix=settings.event_route)
    app.mount("/", StaticFiles(directory=root, html=True), name="files")

    return app
