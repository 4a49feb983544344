"""Handling of operator interrupts during a reconcile run.

The first interrupt cancels the run so that the flux command and the wait
loop can unwind. A second interrupt within a short window exits the process
immediately without any cleanup.
"""

import asyncio
from collections.abc import Callable
from enum import Enum
import logging
import os
import signal
import sys
import threading
import time
from typing import TextIO

from .config import InterruptConfig

__all__ = [
    "InterruptAction",
    "InterruptCoordinator",
]

_LOGGER = logging.getLogger(__name__)

SIGNALS = (signal.SIGINT, signal.SIGTERM)


class InterruptAction(Enum):
    """What was done in response to an interrupt."""

    CANCEL = "cancel"
    FORCE_EXIT = "force_exit"


class InterruptCoordinator:
    """Counts interrupts within a sliding window."""

    def __init__(
        self,
        on_cancel: Callable[[], None],
        config: InterruptConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
        exit_fn: Callable[[int], None] = os._exit,
        stream: TextIO | None = None,
    ) -> None:
        """Initialize InterruptCoordinator.

        Args:
            on_cancel: Called on the first interrupt to cancel the run.
            config: Window and exit status, defaults if not specified.
            clock: Source of monotonic timestamps in seconds.
            exit_fn: Called with the exit status to terminate the process.
            stream: Destination for interrupt notices, stderr by default.
        """
        self._on_cancel = on_cancel
        self._config = config or InterruptConfig()
        self._clock = clock
        self._exit_fn = exit_fn
        self._stream = stream
        self._lock = threading.Lock()
        self._last_signal: float | None = None
        self._count = 0

    @property
    def count(self) -> int:
        """Number of interrupts received within the current window."""
        with self._lock:
            return self._count

    def handle(self) -> InterruptAction:
        """Respond to an interrupt."""
        with self._lock:
            now = self._clock()
            if (
                self._last_signal is not None
                and now - self._last_signal < self._config.window
            ):
                self._count += 1
            else:
                self._count = 1
            self._last_signal = now
            count = self._count

        stream = self._stream or sys.stderr
        if count == 1:
            _LOGGER.debug("Interrupt received, cancelling")
            print(
                "\n⚠️  Interrupt received. Cancelling... "
                f"(Press Ctrl+C again within {self._config.window:g}s to force exit)",
                file=stream,
            )
            self._on_cancel()
            return InterruptAction.CANCEL

        print("\n⚠️  Force exit requested. Exiting immediately.", file=stream, flush=True)
        self._exit_fn(self._config.exit_code)
        return InterruptAction.FORCE_EXIT

    def install(self, loop: asyncio.AbstractEventLoop) -> None:
        """Handle interrupt and termination signals on the event loop."""
        for sig in SIGNALS:
            loop.add_signal_handler(sig, self.handle)

    def uninstall(self, loop: asyncio.AbstractEventLoop) -> None:
        """Restore the default signal handling."""
        for sig in SIGNALS:
            loop.remove_signal_handler(sig)
