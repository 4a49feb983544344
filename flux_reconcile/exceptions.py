"""Exceptions related to flux-reconcile."""

__all__ = [
    "FluxReconcileException",
    "InputException",
    "ResolutionError",
    "UnsupportedKindError",
    "ClientException",
    "ProbeError",
    "CommandException",
    "TriggerFailedError",
    "WaitException",
    "ReconcileTimeoutError",
    "ReconcileCancelledError",
]


class FluxReconcileException(Exception):
    """Generic base exception used for this library."""


class InputException(FluxReconcileException):
    """Raised when the command line input is not valid."""


class ResolutionError(FluxReconcileException):
    """Raised when the API coordinates of a resource cannot be determined."""


class UnsupportedKindError(ResolutionError):
    """Raised when a resource kind cannot be mapped to API coordinates."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"unsupported resource kind: {kind}")
        self.kind = kind


class ClientException(FluxReconcileException):
    """Raised when a kubernetes API client could not be created."""


class ProbeError(FluxReconcileException):
    """Raised when reading a resource from the API failed.

    These are treated as transient by the wait loop and retried.
    """


class CommandException(FluxReconcileException):
    """Raised when there is a failure running a subcommand."""


class TriggerFailedError(CommandException):
    """Raised when the reconcile command exited with a non-zero status."""

    def __init__(self, command: str, returncode: int) -> None:
        super().__init__(f"Command '{command}' failed with return code {returncode}")
        self.command = command
        self.returncode = returncode


class WaitException(FluxReconcileException):
    """Raised when waiting for a resource did not end with it being ready."""


class ReconcileTimeoutError(WaitException):
    """Raised when the resource did not become ready before the deadline."""

    def __init__(self, kind: str, last_status: str | None = None) -> None:
        super().__init__(f"timeout waiting for {kind} reconciliation")
        self.kind = kind
        self.last_status = last_status


class ReconcileCancelledError(WaitException):
    """Raised when the wait was cancelled before the resource became ready."""

    def __init__(self, cause: str) -> None:
        super().__init__(cause)
        self.cause = cause
