"""Watch kubernetes events about the resource and print the ones that are new."""

from dataclasses import dataclass
import logging
import threading

from .client import ResourceClient
from .config import EventConfig
from .context import ReconcileContext
from .exceptions import FluxReconcileException
from .manifest import EVENT_TYPE_WARNING, EventRecord, WatchTarget
from .output import Printer

__all__ = [
    "EventNotice",
    "EventMonitor",
]

_LOGGER = logging.getLogger(__name__)

# Reasons that flux reports as Normal events that still need attention
WARNING_REASONS = {"HealthCheckFailed", "DependencyNotReady"}


@dataclass(frozen=True)
class EventNotice:
    """An event to show to the operator."""

    reason: str
    message: str
    warning: bool

    @classmethod
    def from_record(cls, record: EventRecord) -> "EventNotice":
        return cls(
            reason=record.reason,
            message=record.message,
            warning=(
                record.type == EVENT_TYPE_WARNING or record.reason in WARNING_REASONS
            ),
        )


class EventMonitor:
    """Polls events for a resource and reports when they change.

    Recency is taken from the position of the events in the list returned by
    the API, the last entry being the most recent. Events are not sorted by
    timestamp so the notices are best effort.
    """

    def __init__(
        self,
        client: ResourceClient,
        target: WatchTarget,
        printer: Printer,
        config: EventConfig | None = None,
    ) -> None:
        """Initialize EventMonitor."""
        self._client = client
        self._target = target
        self._printer = printer
        self._config = config or EventConfig()
        self._lock = threading.Lock()
        self._last_fingerprint = ""

    async def poll_once(self) -> list[EventNotice]:
        """Fetch events and return notices if they changed since the last poll.

        Failures to list events are ignored.
        """
        try:
            docs = await self._client.list_events(
                self._target.namespace, self._target.name, self._config.list_limit
            )
        except FluxReconcileException as err:
            _LOGGER.debug("Unable to list events for %s: %s", self._target, err)
            return []
        if not docs:
            return []

        records = [EventRecord.parse_doc(doc) for doc in docs]
        newest = records[::-1]
        fingerprint = "".join(
            record.fingerprint for record in newest[: self._config.fingerprint_depth]
        )
        with self._lock:
            if fingerprint == self._last_fingerprint:
                return []
            self._last_fingerprint = fingerprint

        recent = newest[: self._config.notice_count]
        _LOGGER.debug(
            "New events for %s: %s", self._target, [r.to_dict() for r in recent]
        )
        return [EventNotice.from_record(record) for record in recent]

    async def watch(self, ctx: ReconcileContext) -> None:
        """Print new events until the context is done."""
        while not await ctx.sleep(self._config.poll_interval):
            for notice in await self.poll_once():
                self._printer.event(notice.reason, notice.message, notice.warning)
        _LOGGER.debug("Stopped watching events for %s", self._target)
