"""Library for running the flux command that triggers reconciliation.

Output of the command is streamed while it runs: stdout is relayed as is and
stderr is scanned for kubernetes client warnings which are reformatted.
"""

import asyncio
import codecs
from dataclasses import dataclass
import logging
import os
import re
import shlex
import subprocess
import sys
from typing import AsyncIterator, TextIO

from .context import ReconcileContext
from .exceptions import (
    CommandException,
    ReconcileCancelledError,
    TriggerFailedError,
)
from .manifest import KIND_HELM_RELEASE, KIND_KUSTOMIZATION, WatchTarget
from .output import Printer

__all__ = [
    "Command",
    "reconcile_command",
]

_LOGGER = logging.getLogger(__name__)

# Kubernetes client warning e.g. `W1123 13:40:53.387945   52532 warnings.go:70] message`
KUBERNETES_WARNING_RE = re.compile(
    r"^W\d+\s+\d+:\d+:\d+\.\d+\s+\d+\s+\S+:\d+\]\s+(.+)$"
)

WITH_SOURCE_KINDS = {KIND_KUSTOMIZATION, KIND_HELM_RELEASE}

# Bytes of stdout relayed per read
READ_SIZE = 65536


@dataclass
class Command:
    """An instance of a command to run."""

    cmd: list[str]
    """Array of command line arguments."""

    env: dict[str, str] | None = None
    """Environment variables for the subprocess."""

    @property
    def string(self) -> str:
        """Render the command as a single string."""
        return " ".join([shlex.quote(arg) for arg in self.cmd])

    def __str__(self) -> str:
        """Render as a debug string."""
        return self.string

    async def run(
        self,
        ctx: ReconcileContext,
        printer: Printer,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        """Run the command, streaming output until it exits.

        The command is killed if the context is done before it exits. Raises
        TriggerFailedError if the command exits with a non-zero status.
        """
        _LOGGER.debug("Running command: %s", self)
        env = {
            **os.environ,
            **(self.env if self.env else {}),
        }
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=env,
            )
        except OSError as err:
            raise CommandException(f"Error starting {self.cmd[0]}: {err}") from err

        assert proc.stdout is not None
        assert proc.stderr is not None
        relays = [
            asyncio.create_task(_relay_stdout(proc.stdout, stdout), name="stdout"),
            asyncio.create_task(
                _relay_stderr(proc.stderr, printer, stderr), name="stderr"
            ),
        ]
        exited = asyncio.create_task(proc.wait(), name="wait")
        cancelled = asyncio.create_task(ctx.wait(), name="cancelled")
        try:
            await asyncio.wait(
                [exited, cancelled], return_when=asyncio.FIRST_COMPLETED
            )
            if not exited.done():
                _LOGGER.debug("Killing command: %s", self)
                proc.kill()
            returncode = await exited
            # Drain stderr before reporting so diagnostics are not lost
            await asyncio.gather(*relays)
        finally:
            if proc.returncode is None:
                proc.kill()
            cancelled.cancel()
            for task in (exited, *relays):
                task.cancel()

        if returncode == 0:
            return
        if ctx.done:
            raise ReconcileCancelledError(ctx.cause or "")
        raise TriggerFailedError(str(self), returncode)


async def _relay_stdout(reader: asyncio.StreamReader, stream: TextIO | None) -> None:
    out = stream or sys.stdout
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while chunk := await reader.read(READ_SIZE):
        out.write(decoder.decode(chunk))
        out.flush()
    if tail := decoder.decode(b"", final=True):
        out.write(tail)
        out.flush()


async def _read_lines(
    reader: asyncio.StreamReader,
) -> AsyncIterator[tuple[bytes, bool]]:
    """Yield each line along with whether it is complete.

    A line longer than the reader's buffer limit is yielded in pieces, all but
    the last flagged as incomplete.
    """
    while True:
        try:
            line = await reader.readuntil(b"\n")
        except asyncio.IncompleteReadError as err:
            if err.partial:
                yield err.partial, True
            return
        except asyncio.LimitOverrunError as err:
            yield await reader.readexactly(err.consumed), False
            continue
        yield line, True


async def _relay_stderr(
    reader: asyncio.StreamReader, printer: Printer, stream: TextIO | None
) -> None:
    out = stream or sys.stderr
    continued = False
    async for raw, complete in _read_lines(reader):
        text = raw.decode("utf-8", errors="replace")
        if continued or not complete:
            # Pieces of an overlong line are passed through unchanged
            out.write(text)
            out.flush()
        elif match := KUBERNETES_WARNING_RE.match(line := text.rstrip("\r\n")):
            printer.warning(match.group(1))
        elif line.strip():
            print(line, file=out, flush=True)
        continued = not complete


def reconcile_command(target: WatchTarget, flux_binary: str = "flux") -> Command:
    """Return the flux command that triggers reconciliation of the target."""
    kind = target.kind.cli_name
    args = [flux_binary, "reconcile", kind]
    if source_type := target.kind.source_type:
        args.append(source_type)
    args.extend([target.name, "-n", target.namespace])
    if kind in WITH_SOURCE_KINDS:
        args.append("--with-source")
    return Command(args)
