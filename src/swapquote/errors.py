"""Error taxonomy surfaced to callers of the swap engine.

Validation errors (unsupported pairs, limit violations) are raised before any
network call. Backend errors are raised at the quote fetcher boundary and
propagate unmodified. Execution errors always carry the steps that completed.
"""

from enum import Enum
from typing import Optional


class SwapError(Exception):
    """Base class for all swap engine errors."""

    retryable: bool = False

    def __init__(self, message: str, backend: Optional[str] = None):
        self.backend = backend
        super().__init__(message)


class UnsupportedPairError(SwapError):
    """Currency pair or network is not serviceable by this backend.

    Not retryable; the caller should try a different backend.
    """

    def __init__(
        self,
        backend: Optional[str],
        from_code: str,
        to_code: str,
        reason: str = "",
    ):
        self.from_code = from_code
        self.to_code = to_code
        self.reason = reason
        message = f"{backend or 'backend'} does not support {from_code} -> {to_code}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, backend)


class BoundKind(str, Enum):
    """Which declared limit an amount violated."""

    BELOW_MINIMUM = "below-minimum"
    ABOVE_MAXIMUM = "above-maximum"


class LimitViolation(SwapError):
    """Amount is outside the backend-declared limits.

    The bound is expressed in native units of the side it applies to.
    """

    def __init__(
        self,
        bound_kind: BoundKind,
        bound: str,
        side: str,
        backend: Optional[str] = None,
    ):
        self.bound_kind = bound_kind
        self.bound = bound
        self.side = side
        super().__init__(
            f"Amount is {bound_kind.value} ({side} side bound: {bound})", backend
        )


class InsufficientFundsError(SwapError):
    """Spendable balance is exhausted after reserving network fees."""


class InvalidAmountError(SwapError):
    """Backend rejected the amount as missing or unusable."""


class BackendUnavailableError(SwapError):
    """Transport-level failure talking to a backend. Safe to retry."""

    retryable = True


class BackendProtocolError(SwapError):
    """Backend answered with a non-2xx status or an unparseable reply."""

    def __init__(
        self,
        backend: Optional[str],
        status_code: Optional[int],
        message: str = "",
    ):
        self.status_code = status_code
        detail = f"{backend or 'backend'} returned error code {status_code}"
        if message:
            detail = f"{detail}: {message}"
        super().__init__(detail, backend)


class QuoteExpiredError(SwapError):
    """Execution was attempted after the quote expired."""


class ExecutionInProgressError(SwapError):
    """A quote is already being executed."""


class ExecutionFailedError(SwapError):
    """A step of a quote failed to sign, broadcast or be recorded.

    Attributes:
        completed_steps: Indexes of steps that were broadcast. Includes the
            failed step when only its recording failed
        failed_step: Index of the step that failed
        txids: Transaction ids of the completed steps, in order
        cause: The underlying wallet error
    """

    def __init__(
        self,
        completed_steps: list[int],
        failed_step: int,
        txids: list[str],
        cause: Optional[BaseException] = None,
        backend: Optional[str] = None,
    ):
        self.completed_steps = list(completed_steps)
        self.failed_step = failed_step
        self.txids = list(txids)
        self.cause = cause
        super().__init__(self._describe(), backend)

    @property
    def failed_after_broadcast(self) -> bool:
        """Whether the failed step itself reached the network."""
        return self.failed_step in self.completed_steps

    def _describe(self) -> str:
        reason = f"{type(self.cause).__name__}: {self.cause}" if self.cause else "unknown error"
        return f"Step {self.failed_step} failed ({reason})"


class PartialExecutionFailure(ExecutionFailedError):
    """Some steps were broadcast before a later step failed.

    The caller can decide whether to retry only the remaining steps.
    """

    def _describe(self) -> str:
        completed = ", ".join(str(i) for i in self.completed_steps)
        return f"Steps [{completed}] completed, {super()._describe()}"
