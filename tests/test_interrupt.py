"""Tests for handling operator interrupts."""

import asyncio
import io
import os
import signal
from unittest.mock import MagicMock

import pytest

from flux_reconcile.config import InterruptConfig
from flux_reconcile.interrupt import InterruptAction, InterruptCoordinator


class FakeClock:
    """A clock that only moves when told to."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def on_cancel() -> MagicMock:
    return MagicMock()


@pytest.fixture
def exit_fn() -> MagicMock:
    return MagicMock()


@pytest.fixture
def stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def coordinator(
    on_cancel: MagicMock, clock: FakeClock, exit_fn: MagicMock, stream: io.StringIO
) -> InterruptCoordinator:
    return InterruptCoordinator(
        on_cancel, InterruptConfig(), clock=clock, exit_fn=exit_fn, stream=stream
    )


def test_first_interrupt_cancels(
    coordinator: InterruptCoordinator,
    on_cancel: MagicMock,
    exit_fn: MagicMock,
    stream: io.StringIO,
) -> None:
    """Test the first interrupt only cancels the run."""
    assert coordinator.handle() == InterruptAction.CANCEL
    assert coordinator.count == 1
    on_cancel.assert_called_once_with()
    exit_fn.assert_not_called()
    assert "Interrupt received. Cancelling..." in stream.getvalue()
    assert "within 2s to force exit" in stream.getvalue()


def test_second_interrupt_within_window_exits(
    coordinator: InterruptCoordinator,
    clock: FakeClock,
    on_cancel: MagicMock,
    exit_fn: MagicMock,
    stream: io.StringIO,
) -> None:
    """Test two interrupts close together force an exit."""
    coordinator.handle()
    clock.now += 1.5
    assert coordinator.handle() == InterruptAction.FORCE_EXIT
    assert coordinator.count == 2
    on_cancel.assert_called_once_with()
    exit_fn.assert_called_once_with(130)
    assert "Force exit requested" in stream.getvalue()


def test_interrupts_outside_window_reset(
    coordinator: InterruptCoordinator,
    clock: FakeClock,
    on_cancel: MagicMock,
    exit_fn: MagicMock,
) -> None:
    """Test interrupts spaced further apart than the window each cancel."""
    coordinator.handle()
    clock.now += 2.5
    assert coordinator.handle() == InterruptAction.CANCEL
    assert coordinator.count == 1
    clock.now += 3
    assert coordinator.handle() == InterruptAction.CANCEL
    assert on_cancel.call_count == 3
    exit_fn.assert_not_called()


def test_stale_count_resets(
    coordinator: InterruptCoordinator,
    clock: FakeClock,
    exit_fn: MagicMock,
) -> None:
    """Test a count from an old window does not escalate a later interrupt."""
    coordinator.handle()
    clock.now += 0.5
    coordinator.handle()
    clock.now += 0.5
    coordinator.handle()
    assert coordinator.count == 3
    assert exit_fn.call_count == 2

    clock.now += 10
    assert coordinator.handle() == InterruptAction.CANCEL
    assert coordinator.count == 1
    assert exit_fn.call_count == 2


def test_window_measured_from_last_interrupt(
    coordinator: InterruptCoordinator,
    clock: FakeClock,
    exit_fn: MagicMock,
) -> None:
    """Test the window restarts at every interrupt."""
    coordinator.handle()
    clock.now += 2.0
    assert coordinator.handle() == InterruptAction.CANCEL
    clock.now += 1.9
    assert coordinator.handle() == InterruptAction.FORCE_EXIT
    exit_fn.assert_called_once_with(130)


def test_custom_window(
    on_cancel: MagicMock, clock: FakeClock, exit_fn: MagicMock, stream: io.StringIO
) -> None:
    coordinator = InterruptCoordinator(
        on_cancel,
        InterruptConfig(window=0.5, exit_code=2),
        clock=clock,
        exit_fn=exit_fn,
        stream=stream,
    )
    coordinator.handle()
    clock.now += 0.6
    assert coordinator.handle() == InterruptAction.CANCEL
    clock.now += 0.1
    assert coordinator.handle() == InterruptAction.FORCE_EXIT
    exit_fn.assert_called_once_with(2)
    assert "within 0.5s" in stream.getvalue()


async def test_install_signal_handler(
    on_cancel: MagicMock, exit_fn: MagicMock, stream: io.StringIO
) -> None:
    """Test a delivered signal cancels the run."""
    coordinator = InterruptCoordinator(on_cancel, exit_fn=exit_fn, stream=stream)
    loop = asyncio.get_running_loop()
    coordinator.install(loop)
    try:
        os.kill(os.getpid(), signal.SIGINT)
        for _ in range(100):
            if on_cancel.called:
                break
            await asyncio.sleep(0.01)
    finally:
        coordinator.uninstall(loop)
    on_cancel.assert_called_once_with()
    exit_fn.assert_not_called()
