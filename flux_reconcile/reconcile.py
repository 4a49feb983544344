"""Trigger reconciliation of a flux resource and wait for it to complete.

The flux command is run first, while kubernetes events about the resource are
printed in the background. Once the command succeeds the resource is polled
until it is ready. Both phases share one context so that an interrupt or the
timeout stops whichever phase is running.
"""

import asyncio
import logging

from .client import ResourceClient, load_client
from .command import reconcile_command
from .config import ReconcileOptions
from .context import ReconcileContext, trace_context
from .events import EventMonitor
from .exceptions import ClientException
from .output import Printer
from .waiter import ReadyWaiter

__all__ = [
    "reconcile",
]

_LOGGER = logging.getLogger(__name__)


async def reconcile(
    options: ReconcileOptions,
    ctx: ReconcileContext,
    printer: Printer,
    client: ResourceClient | None = None,
) -> None:
    """Reconcile the resource and optionally wait for it to become ready.

    When no client is given one is created from the kubeconfig. If that fails
    the command still runs but events are not shown and there is no wait.
    """
    target = options.target
    owns_client = False
    if client is None:
        try:
            client = await load_client(options.kubeconfig)
            owns_client = True
        except ClientException as err:
            printer.warning(f"Could not start event monitoring: {err}")

    watch_task: asyncio.Task[None] | None = None
    if client is not None:
        monitor = EventMonitor(client, target, printer, options.event_config)
        watch_task = asyncio.create_task(monitor.watch(ctx), name="events")

    try:
        command = reconcile_command(target, options.flux_binary)
        printer.command(command.cmd)
        with trace_context("Reconcile"):
            await command.run(ctx, printer)

        if not options.wait or client is None:
            return
        kind = target.kind.cli_name
        printer.waiting(kind)
        waiter = ReadyWaiter(client, target, printer, options.wait_config)
        with trace_context("Wait"):
            await waiter.wait_for_ready(ctx, options.timeout)
        printer.success(kind)
    finally:
        if watch_task is not None:
            watch_task.cancel()
            try:
                await watch_task
            except asyncio.CancelledError:
                pass
            except Exception as err:  # pylint: disable=broad-except
                _LOGGER.error("Event watcher failed: %s", err)
        if owns_client and client is not None:
            await client.close()
