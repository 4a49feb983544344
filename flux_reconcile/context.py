"""Cancellation and tracing shared by the concurrent parts of a reconcile run."""

import asyncio
import contextvars
from contextlib import contextmanager
import logging
from time import perf_counter
from typing import Generator

_LOGGER = logging.getLogger(__name__)

__all__ = [
    "ReconcileContext",
    "trace_context",
    "CANCELED",
    "DEADLINE_EXCEEDED",
]

CANCELED = "context canceled"
DEADLINE_EXCEEDED = "context deadline exceeded"


trace: contextvars.ContextVar[list[str]] = contextvars.ContextVar("trace")


@contextmanager
def trace_context(name: str) -> Generator[None, None, None]:
    stack = trace.get([])
    token = trace.set(stack + [name])
    label = " > ".join(stack + [name])
    t1 = perf_counter()
    _LOGGER.debug("[Trace] > %s", label)
    try:
        yield
    finally:
        t2 = perf_counter()
        trace.reset(token)
        _LOGGER.debug("[Trace] < %s (%0.2fs)", label, (t2 - t1))


class ReconcileContext:
    """A cancellation signal observed by every loop of a reconcile run.

    The context is done once `cancel` is called or the optional timeout
    expires. The first cause recorded is the one reported.
    """

    def __init__(self, timeout: float | None = None) -> None:
        """Initialize the context, must be called from a running event loop."""
        self._done = asyncio.Event()
        self._cause: str | None = None
        self._timer: asyncio.TimerHandle | None = None
        if timeout is not None:
            loop = asyncio.get_running_loop()
            self._timer = loop.call_later(timeout, self.cancel, DEADLINE_EXCEEDED)

    def cancel(self, cause: str = CANCELED) -> None:
        """Mark the context as done, a no-op if already done."""
        if self._done.is_set():
            return
        _LOGGER.debug("Context done: %s", cause)
        self._cause = cause
        self._done.set()
        self.close()

    def close(self) -> None:
        """Release the timeout timer."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def cause(self) -> str | None:
        """Reason the context is done, or None while still active."""
        return self._cause

    async def wait(self) -> None:
        """Block until the context is done."""
        await self._done.wait()

    async def sleep(self, delay: float) -> bool:
        """Sleep for the delay, returning True early if the context is done."""
        if self._done.is_set():
            return True
        try:
            async with asyncio.timeout(max(delay, 0)):
                await self._done.wait()
        except TimeoutError:
            return False
        return True
