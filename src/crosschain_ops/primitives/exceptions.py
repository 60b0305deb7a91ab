"""Error taxonomy for crosschain-ops.

Every error raised by the library derives from :class:`CrossChainOpsError`
and carries an :class:`ErrorKind`, so callers can dispatch on ``error.kind``
exhaustively instead of matching exception names or message strings.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failure kinds surfaced by the library."""

    VALIDATION = "validation"
    FETCH = "fetch"
    TIMEOUT = "timeout"
    ABORTED = "aborted"


class CrossChainOpsError(Exception):
    """Root exception for the entire crosschain-ops library."""

    kind: ErrorKind

    @property
    def retryable(self) -> bool:
        """Whether a polling wrapper may try the failed step again."""
        return self.kind is ErrorKind.FETCH


class ValidationError(CrossChainOpsError):
    """Raised when caller input is malformed. Never retried.

    Carries structured errors: ``{field: [messages]}``.
    """

    kind = ErrorKind.VALIDATION

    def __init__(self, errors: dict[str, list[str]] | str | None = None) -> None:
        if isinstance(errors, str):
            self.errors: dict[str, list[str]] = {"__root__": [errors]}
        elif errors is None:
            self.errors = {}
        else:
            self.errors = errors
        super().__init__(str(self.errors))


class FetchError(CrossChainOpsError):
    """Raised when the status service cannot be reached or answers with an error."""

    kind = ErrorKind.FETCH

    def __init__(
        self,
        message: str,
        *,
        endpoint: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.status_code = status_code
        super().__init__(message)


class TrackingTimeoutError(CrossChainOpsError, TimeoutError):
    """Raised when a polling budget or deadline runs out before a result exists."""

    kind = ErrorKind.TIMEOUT

    def __init__(
        self,
        operation: str,
        attempts: int,
        last_error: BaseException | None = None,
    ) -> None:
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        msg = f"{operation} did not complete after {attempts} attempt(s)"
        if last_error is not None:
            msg += f" - last error: {last_error}"
        super().__init__(msg)


class OperationAbortedError(CrossChainOpsError):
    """Raised when the caller signals cancellation of a polling loop."""

    kind = ErrorKind.ABORTED

    def __init__(self, operation: str, attempts: int) -> None:
        self.operation = operation
        self.attempts = attempts
        super().__init__(f"{operation} aborted by caller after {attempts} attempt(s)")
