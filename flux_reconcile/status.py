"""Status information for a flux resource read from the cluster."""

from dataclasses import dataclass
from enum import StrEnum
import logging

from .client import ResourceClient
from .exceptions import ProbeError
from .manifest import (
    CONDITION_FALSE,
    READY_CONDITION,
    Condition,
    ResourceCoordinates,
    WatchTarget,
    parse_conditions,
)

__all__ = [
    "Verdict",
    "StatusSnapshot",
    "StatusProber",
    "is_ready",
    "summarize",
]

_LOGGER = logging.getLogger(__name__)

CHECKING = "checking"
READY_SUMMARY = "Ready=True"


class Verdict(StrEnum):
    """Readiness of a resource as reported by its conditions."""

    READY = "Ready"
    NOT_READY = "NotReady"
    UNKNOWN = "Unknown"
    ERROR = "Error"


@dataclass
class StatusSnapshot:
    """Readiness and a human readable summary of the conditions."""

    verdict: Verdict
    summary: str

    def __str__(self) -> str:
        """Return a string representation of the status."""
        return f"{self.verdict}: {self.summary}"


def is_ready(conditions: list[Condition]) -> bool:
    """Return True if the conditions contain Ready=True."""
    return any(cond.is_ready for cond in conditions)


def summarize(conditions: list[Condition]) -> StatusSnapshot:
    """Summarize the conditions for a progress report.

    The Ready condition is shown with its message, followed by any other
    condition that is False and explains why.
    """
    parts: list[str] = []
    for cond in conditions:
        if cond.type == READY_CONDITION:
            if cond.is_ready:
                return StatusSnapshot(Verdict.READY, READY_SUMMARY)
            if cond.message:
                parts.append(f"{cond.type}={cond.status} ({cond.message})")
            else:
                parts.append(f"{cond.type}={cond.status}")
        elif cond.status == CONDITION_FALSE and cond.message:
            parts.append(f"{cond.type}={cond.status}: {cond.message}")
    if not parts:
        return StatusSnapshot(Verdict.UNKNOWN, CHECKING)
    return StatusSnapshot(Verdict.NOT_READY, ", ".join(parts))


class StatusProber:
    """Reads the target resource and reports on its conditions."""

    def __init__(self, client: ResourceClient, target: WatchTarget) -> None:
        """Initialize StatusProber."""
        self._client = client
        self._target = target

    async def probe_ready(self, coords: ResourceCoordinates) -> bool:
        """Return True if the resource is ready.

        Raises ProbeError if the resource could not be read.
        """
        doc = await self._client.get_resource(
            coords, self._target.namespace, self._target.name
        )
        if (conditions := parse_conditions(doc)) is None:
            return False
        return is_ready(conditions)

    async def probe_summary(self, coords: ResourceCoordinates) -> StatusSnapshot:
        """Return a summary of the resource status, never raising for API errors."""
        try:
            doc = await self._client.get_resource(
                coords, self._target.namespace, self._target.name
            )
        except ProbeError as err:
            _LOGGER.debug("Unable to read %s: %s", self._target, err)
            return StatusSnapshot(Verdict.ERROR, f"error getting resource: {err}")
        if not isinstance(doc.get("status"), dict):
            return StatusSnapshot(Verdict.UNKNOWN, "unknown")
        if (conditions := parse_conditions(doc)) is None:
            return StatusSnapshot(Verdict.UNKNOWN, "no conditions")
        return summarize(conditions)
