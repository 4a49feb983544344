"""Flux-reconcile reconcile action."""

import argparse
from argparse import ArgumentParser, BooleanOptionalAction
import asyncio
import logging
import sys

from flux_reconcile.config import DEFAULT_TIMEOUT, ReconcileOptions
from flux_reconcile.context import ReconcileContext
from flux_reconcile.duration import parse_duration
from flux_reconcile.exceptions import InputException
from flux_reconcile.interrupt import InterruptCoordinator
from flux_reconcile.manifest import (
    DEFAULT_NAMESPACE,
    KINDS,
    SOURCE_TYPE_GIT,
    SOURCE_TYPES,
    Kind,
    WatchTarget,
)
from flux_reconcile.output import Printer
from flux_reconcile.reconcile import reconcile

_LOGGER = logging.getLogger(__name__)


def _duration(value: str) -> float:
    try:
        return parse_duration(value)
    except InputException as err:
        raise argparse.ArgumentTypeError(str(err)) from err


class ReconcileAction:
    """Flux-reconcile action that triggers and waits for reconciliation."""

    @classmethod
    def register(cls, args: ArgumentParser) -> ArgumentParser:
        """Register the command line flags."""
        args.add_argument(
            "--kind",
            help="Resource kind (" + ", ".join(KINDS) + ")",
        )
        args.add_argument("--name", help="Resource name")
        args.add_argument(
            "--namespace",
            "-n",
            default=DEFAULT_NAMESPACE,
            help="Namespace of the resource",
        )
        args.add_argument(
            "--wait",
            action=BooleanOptionalAction,
            default=True,
            help="Wait for reconciliation to complete",
        )
        args.add_argument(
            "--timeout",
            type=_duration,
            default=DEFAULT_TIMEOUT,
            help="Timeout for the whole run (e.g. 5m, 1h)",
        )
        args.add_argument(
            "--source-type",
            default=SOURCE_TYPE_GIT,
            help="Source type for 'source' kind (" + ", ".join(SOURCE_TYPES) + ")",
        )
        args.add_argument(
            "--no-color",
            action="store_true",
            default=False,
            help="Disable colored output",
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        kind: str | None,
        name: str | None,
        namespace: str,
        wait: bool,
        timeout: float,
        source_type: str,
        no_color: bool,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        if not kind or not name:
            raise InputException("--kind and --name are required")
        target = WatchTarget(
            kind=Kind.from_args(kind, source_type), name=name, namespace=namespace
        )
        options = ReconcileOptions(
            target=target, wait=wait, timeout=timeout, no_color=no_color
        )
        printer = Printer(no_color=options.no_color)

        ctx = ReconcileContext(options.timeout)
        loop = asyncio.get_running_loop()
        coordinator = InterruptCoordinator(ctx.cancel, stream=sys.stderr)
        coordinator.install(loop)
        try:
            await reconcile(options, ctx, printer)
        finally:
            coordinator.uninstall(loop)
            ctx.close()
