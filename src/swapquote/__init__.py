"""Swap quote orchestration engine.

Validates swap requests against per-backend currency policies, resolves
max-balance requests, enforces backend limits and assembles executable,
time-boxed quotes.
"""

from swapquote.engine import SwapEngine
from swapquote.errors import (
    BackendProtocolError,
    BackendUnavailableError,
    BoundKind,
    ExecutionFailedError,
    ExecutionInProgressError,
    InsufficientFundsError,
    InvalidAmountError,
    LimitViolation,
    PartialExecutionFailure,
    QuoteExpiredError,
    SwapError,
    UnsupportedPairError,
)
from swapquote.execution import ExecutionResult, execute_quote
from swapquote.models import (
    Asset,
    Quote,
    QuoteDirection,
    QuoteState,
    ReceiveAddress,
    StepKind,
    StepState,
    SwapRequest,
    TransactionStep,
)

__version__ = "0.1.0"

__all__ = [
    "SwapEngine",
    "execute_quote",
    "ExecutionResult",
    # Models
    "Asset",
    "SwapRequest",
    "QuoteDirection",
    "Quote",
    "QuoteState",
    "TransactionStep",
    "StepKind",
    "StepState",
    "ReceiveAddress",
    # Errors
    "SwapError",
    "UnsupportedPairError",
    "LimitViolation",
    "BoundKind",
    "InsufficientFundsError",
    "InvalidAmountError",
    "BackendUnavailableError",
    "BackendProtocolError",
    "QuoteExpiredError",
    "ExecutionInProgressError",
    "ExecutionFailedError",
    "PartialExecutionFailure",
]
