"""Coalesces bursts of raw change signals into single notifications."""

import asyncio
from datetime import UTC, datetime

import structlog

from serve_live.events.hub import NotificationHub
from serve_live.events.types import FilesChanged, RawChange

logger = structlog.get_logger()


class Debouncer:
    """Quiet-period debouncer between the watcher and the hub.

    Waits for a first raw signal, then keeps restarting the quiet-period
    timer on every further signal. When the timer elapses with no new
    signal, one FilesChanged event is broadcast.

    Attributes:
        quiet_ms: Quiet period in milliseconds.
    """

    def __init__(
        self,
        source: asyncio.Queue[RawChange],
        hub: NotificationHub,
        quiet_ms: int = 300,
    ) -> None:
        """Initialize debouncer.

        Args:
            source: Queue of raw change signals from the watcher.
            hub: Hub that receives coalesced notifications.
            quiet_ms: Quiet period in milliseconds.
        """
        self._source = source
        self._hub = hub
        self._quiet_ms = quiet_ms
        self._emitted_count = 0
        self._coalesced_count = 0

    @property
    def quiet_ms(self) -> int:
        """Quiet period in milliseconds."""
        return self._quiet_ms

    @property
    def emitted(self) -> int:
        """Number of notifications broadcast."""
        return self._emitted_count

    @property
    def coalesced(self) -> int:
        """Number of raw signals folded into an earlier one."""
        return self._coalesced_count

    async def _collect_burst(self) -> int:
        """Wait for one burst of signals to go quiet.

        Returns:
            Number of raw signals in the burst.
        """
        await self._source.get()
        count = 1
        quiet = self._quiet_ms / 1000.0

        while True:
            try:
                await asyncio.wait_for(self._source.get(), timeout=quiet)
            except TimeoutError:
                return count
            count += 1

    async def run(self) -> None:
        """Consume raw signals forever, broadcasting one event per burst.

        Runs as a long-lived asyncio task; stops when cancelled.
        """
        logger.info("debouncer_started", quiet_ms=self._quiet_ms)
        try:
            while True:
                count = await self._collect_burst()
                self._emitted_count += 1
                self._coalesced_count += count - 1

                event = FilesChanged(timestamp=datetime.now(UTC), coalesced=count)
                delivered = await self._hub.broadcast(event)
                logger.info(
                    "files_changed",
                    coalesced=count,
                    delivered_to=delivered,
                )
        except asyncio.CancelledError:
            logger.info(
                "debouncer_stopped",
                emitted=self._emitted_count,
                coalesced=self._coalesced_count,
            )
            raise
