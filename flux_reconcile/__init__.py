"""
flux-reconcile triggers reconciliation of a flux resource and waits for the
resource to report that it is ready, printing kubernetes events and status
updates while it waits.
"""

__version__ = "0.1.0"

__all__ = [
    "manifest",
    "locator",
    "status",
    "events",
    "waiter",
    "interrupt",
    "exceptions",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
