"""Configuration objects for flux-reconcile."""

from dataclasses import dataclass, field
import os

from .manifest import WatchTarget

DEFAULT_TIMEOUT = 5 * 60.0
FLUX_BINARY = "flux"
KUBECONFIG_ENV = "KUBECONFIG"
NO_COLOR_ENV = "NO_COLOR"


@dataclass
class WaitConfig:
    """Configuration for the wait loop."""

    poll_interval: float = 2.0
    """Seconds between readiness checks, also when the deadline is checked."""

    status_interval: float = 10.0
    """Seconds between progress reports."""

    error_report_interval: float = 10.0
    """Minimum seconds between reports of failed readiness checks."""


@dataclass
class EventConfig:
    """Configuration for watching kubernetes events."""

    poll_interval: float = 3.0
    """Seconds between event list calls."""

    list_limit: int = 10
    """Maximum number of events returned by the API."""

    fingerprint_depth: int = 3
    """Number of most recent events used to detect changes."""

    notice_count: int = 2
    """Number of most recent events printed when something changed."""


@dataclass
class InterruptConfig:
    """Configuration for handling operator interrupts."""

    window: float = 2.0
    """Seconds within which a second interrupt forces an exit."""

    exit_code: int = 130
    """Exit status used when forcing an exit."""


@dataclass
class ReconcileOptions:
    """Options for a single reconcile run."""

    target: WatchTarget

    wait: bool = True
    """Wait for the resource to become ready after triggering reconciliation."""

    timeout: float = DEFAULT_TIMEOUT
    """Seconds for the whole run, also used as the wait deadline."""

    flux_binary: str = FLUX_BINARY

    no_color: bool = False

    kubeconfig: str | None = field(
        default_factory=lambda: os.environ.get(KUBECONFIG_ENV) or None
    )
    """Path to the kubeconfig file, otherwise the client library default."""

    wait_config: WaitConfig = field(default_factory=WaitConfig)
    event_config: EventConfig = field(default_factory=EventConfig)

    def __post_init__(self) -> None:
        if os.environ.get(NO_COLOR_ENV):
            self.no_color = True
