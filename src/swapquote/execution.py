"""Execution of quotes as ordered transaction sequences.

Steps run strictly in order: step i+1 is not signed until step i has been
broadcast, since later steps (a swap) depend on earlier ones (an approval).
A quote executes at most once; invoking it again re-signals the stored
outcome.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from swapquote.errors import (
    ExecutionFailedError,
    ExecutionInProgressError,
    PartialExecutionFailure,
    QuoteExpiredError,
)
from swapquote.models import Quote, QuoteState, StepState
from swapquote.wallet import WalletRuntime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of a completed quote execution."""

    txids: tuple[str, ...]
    order_id: str
    destination_address: str
    step_states: tuple[StepState, ...] = field(default_factory=tuple)

    @property
    def swap_txid(self) -> str:
        """Txid of the swap transaction (always the last step)."""
        return self.txids[-1]


async def execute_quote(
    quote: Quote,
    wallet: WalletRuntime,
    now: Optional[float] = None,
) -> ExecutionResult:
    """Sign, broadcast and record every step of a quote.

    Args:
        quote: Quote to execute
        wallet: Wallet runtime owning the source funds
        now: Current time, for the expiry check

    Returns:
        ExecutionResult with the txids of every step

    Raises:
        QuoteExpiredError: If the quote expired before the first step
        ExecutionInProgressError: If the quote is already executing
        PartialExecutionFailure: If a step failed after earlier steps broadcast,
            or a broadcast step could not be recorded
        ExecutionFailedError: If the first step failed to sign or broadcast
    """
    record = quote.execution

    if record.state == QuoteState.COMPLETED:
        logger.debug(f"Quote {quote.order_id} already completed")
        return record.result
    if record.state == QuoteState.FAILED:
        logger.debug(f"Quote {quote.order_id} already failed")
        raise record.error
    if record.state == QuoteState.EXECUTING:
        raise ExecutionInProgressError(
            f"Quote {quote.order_id} is already executing", quote.backend
        )

    if quote.is_expired(now):
        # Expired quotes are rejected without consuming the quote state
        raise QuoteExpiredError(
            f"Quote {quote.order_id} expired at {quote.expiration:.0f}", quote.backend
        )

    record.state = QuoteState.EXECUTING
    record.step_states = [StepState.PENDING] * len(quote.steps)
    record.txids = []
    logger.info(f"Executing {quote.backend} quote {quote.order_id}: {len(quote.steps)} step(s)")

    for index, step in enumerate(quote.steps):
        try:
            record.step_states[index] = StepState.SIGNING
            signed = await wallet.sign(step)

            record.step_states[index] = StepState.BROADCASTING
            txid = await wallet.broadcast(signed)
        except Exception as e:
            record.step_states[index] = StepState.FAILED
            raise _fail(quote, index, list(range(index)), e) from e

        # Funds have left the wallet from here on
        signed.txid = txid
        record.txids.append(txid)
        record.step_states[index] = StepState.CONFIRMED
        logger.info(f"Quote {quote.order_id} step {index} ({step.kind.value}) broadcast: {txid}")

        try:
            await wallet.record_transaction(signed)
        except Exception as e:
            raise _fail(quote, index, list(range(index + 1)), e) from e

    record.state = QuoteState.COMPLETED
    record.result = ExecutionResult(
        txids=tuple(record.txids),
        order_id=quote.order_id or record.txids[-1],
        destination_address=quote.payout_address,
        step_states=tuple(record.step_states),
    )
    return record.result


def _fail(
    quote: Quote, index: int, completed: list[int], cause: Exception
) -> ExecutionFailedError:
    """Mark the quote failed and store the error re-raised on later calls.

    A step that was broadcast but could not be recorded is listed as
    completed, so callers never re-send it.
    """
    record = quote.execution
    record.state = QuoteState.FAILED
    error_cls = PartialExecutionFailure if completed else ExecutionFailedError
    record.error = error_cls(
        completed_steps=completed,
        failed_step=index,
        txids=record.txids,
        cause=cause,
        backend=quote.backend,
    )
    logger.error(f"Quote {quote.order_id} failed at step {index}: {record.error}")
    return record.error
