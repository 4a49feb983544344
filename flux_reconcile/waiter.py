"""
Provides a utility for waiting on a flux resource to become ready.

The waiter checks readiness on a short interval and reports progress on a
longer one until the resource is ready, the deadline passes, or the context
is cancelled.
"""

import asyncio
from enum import Enum
import logging
from typing import Awaitable, TypeVar

from .client import ResourceClient
from .config import WaitConfig
from .context import ReconcileContext
from .duration import format_duration
from .exceptions import (
    ProbeError,
    ReconcileCancelledError,
    ReconcileTimeoutError,
    ResolutionError,
)
from .locator import resolve
from .manifest import ResourceCoordinates, WatchTarget
from .output import Printer
from .status import StatusProber

__all__ = [
    "WaitState",
    "ReadyWaiter",
]

_LOGGER = logging.getLogger(__name__)

_T = TypeVar("_T")


class WaitState(Enum):
    """Represents the state of the resource being waited on."""

    WAITING = "Waiting"
    READY = "Ready"
    TIMED_OUT = "TimedOut"
    CANCELLED = "Cancelled"
    RESOLUTION_FAILED = "ResolutionFailed"


class ReadyWaiter:
    """Waits for a single resource to report a Ready=True condition."""

    def __init__(
        self,
        client: ResourceClient,
        target: WatchTarget,
        printer: Printer,
        config: WaitConfig | None = None,
    ) -> None:
        """
        Initialize the ReadyWaiter.

        Args:
            client: Client used to read the resource.
            target: The resource to wait for.
            printer: Destination for progress reports.
            config: Polling intervals, defaults if not specified.
        """
        self._client = client
        self._target = target
        self._printer = printer
        self._config = config or WaitConfig()
        self._prober = StatusProber(client, target)
        self._state = WaitState.WAITING

    @property
    def state(self) -> WaitState:
        return self._state

    def _finish(self, state: WaitState) -> None:
        _LOGGER.debug("Wait for %s finished: %s", self._target, state.value)
        self._state = state

    async def wait_for_ready(self, ctx: ReconcileContext, timeout: float) -> None:
        """Block until the resource is ready.

        Raises ReconcileTimeoutError if the deadline passes,
        ReconcileCancelledError if the context is done, and the resolution
        error if the resource kind cannot be addressed.
        """
        self._state = WaitState.WAITING
        try:
            coords = await self._until_done(ctx, resolve(self._client, self._target))
        except ResolutionError:
            self._finish(WaitState.RESOLUTION_FAILED)
            raise
        _LOGGER.debug("Waiting for %s using %s", self._target, coords)

        loop = asyncio.get_running_loop()
        start = loop.time()
        deadline = start + timeout
        next_poll = start + self._config.poll_interval
        next_status = start + self._config.status_interval
        last_error_report = start

        while True:
            delay = min(next_poll, next_status) - loop.time()
            if await ctx.sleep(delay):
                self._finish(WaitState.CANCELLED)
                raise ReconcileCancelledError(ctx.cause or "")

            now = loop.time()
            if now >= next_poll:
                next_poll = _advance(next_poll, self._config.poll_interval, now)
                if now > deadline:
                    last_status = await self._report_timeout(ctx, coords)
                    self._finish(WaitState.TIMED_OUT)
                    raise ReconcileTimeoutError(
                        self._target.kind.cli_name, last_status
                    )
                try:
                    ready = await self._until_done(
                        ctx, self._prober.probe_ready(coords)
                    )
                except ProbeError as err:
                    now = loop.time()
                    if now - last_error_report > self._config.error_report_interval:
                        self._printer.status(
                            f"Unable to check status: {err} (will retry)"
                        )
                        last_error_report = now
                    ready = False
                if ready:
                    self._finish(WaitState.READY)
                    return

            now = loop.time()
            if now >= next_status:
                next_status = _advance(next_status, self._config.status_interval, now)
                await self._report_progress(ctx, coords, now - start, deadline - now)

    async def _until_done(self, ctx: ReconcileContext, aw: Awaitable[_T]) -> _T:
        """Await an API read, abandoning it as soon as the context is done."""
        task = asyncio.ensure_future(aw)
        done = asyncio.create_task(ctx.wait())
        try:
            await asyncio.wait([task, done], return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            done.cancel()
        if not task.done():
            task.cancel()
            self._finish(WaitState.CANCELLED)
            raise ReconcileCancelledError(ctx.cause or "")
        return task.result()

    async def _report_progress(
        self,
        ctx: ReconcileContext,
        coords: ResourceCoordinates,
        elapsed: float,
        remaining: float,
    ) -> None:
        snapshot = await self._until_done(ctx, self._prober.probe_summary(coords))
        _LOGGER.debug("Status of %s: %s", self._target, snapshot)
        self._printer.status(
            f"Still waiting... (elapsed: {format_duration(elapsed)}, "
            f"remaining: {format_duration(remaining)})"
        )
        if snapshot.summary:
            self._printer.status(f"Current status: {snapshot.summary}")

    async def _report_timeout(
        self, ctx: ReconcileContext, coords: ResourceCoordinates
    ) -> str:
        snapshot = await self._until_done(ctx, self._prober.probe_summary(coords))
        self._printer.status(f"Timeout reached. Last known status: {snapshot.summary}")
        return snapshot.summary


def _advance(scheduled: float, interval: float, now: float) -> float:
    """Return the next tick, skipping ticks missed while busy."""
    scheduled += interval
    if scheduled <= now:
        scheduled = now + interval
    return scheduled
