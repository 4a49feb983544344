"""Command line tool for reconciling a flux resource and waiting for it."""

import argparse
import asyncio
import logging
import os
import sys
import traceback

from flux_reconcile import __version__
from flux_reconcile.config import NO_COLOR_ENV
from flux_reconcile.exceptions import (
    CommandException,
    FluxReconcileException,
    InputException,
    TriggerFailedError,
    WaitException,
)
from flux_reconcile.output import Printer

from .reconcile import ReconcileAction

_LOGGER = logging.getLogger(__name__)

USAGE_EPILOG = "Kinds: kustomization, helmrelease, source"


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flux-reconcile",
        description="Reconcile a flux resource and wait for it to become ready.",
        epilog=USAGE_EPILOG,
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )
    parser.add_argument(
        "--version",
        action="store_true",
        default=False,
        help="Print version information and exit",
    )
    ReconcileAction.register(parser)
    return parser


def run(argv: list[str] | None = None) -> int:
    """Run the command line tool and return the exit status."""
    parser = _make_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    if args.version:
        print(f"flux-reconcile {__version__}")
        return 0

    printer = Printer(no_color=args.no_color or bool(os.environ.get(NO_COLOR_ENV)))
    action = args.cls()
    try:
        asyncio.run(action.run(**vars(args)))
    except InputException as err:
        print(f"Error: {err}", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1
    except TriggerFailedError as err:
        _LOGGER.debug("%s", err)
        return err.returncode if err.returncode > 0 else 1
    except CommandException as err:
        print(f"Error running flux: {err}", file=sys.stderr)
        return 1
    except WaitException as err:
        printer.error(f"Reconciliation failed or timed out: {err}")
        return 1
    except FluxReconcileException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("flux-reconcile error: ", err, file=sys.stderr)
        return 1
    return 0


def main() -> None:
    """Flux-reconcile command line tool main entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
