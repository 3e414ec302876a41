"""Tests for quote execution."""

import time

import pytest

from swapquote.errors import (
    ExecutionFailedError,
    ExecutionInProgressError,
    PartialExecutionFailure,
    QuoteExpiredError,
)
from swapquote.execution import execute_quote
from swapquote.models import (
    Quote,
    QuoteState,
    StepKind,
    StepState,
    SwapRequest,
    TransactionStep,
)

from conftest import ETH, USDT, InMemoryWallet


class UnrecordedWallet(InMemoryWallet):
    """Wallet whose transaction history store is unavailable."""

    async def record_transaction(self, signed):
        raise OSError("history store is read-only")


def make_quote(kinds=(StepKind.TRANSFER,), expiration=None) -> Quote:
    steps = tuple(
        TransactionStep(
            target_address=f"target-{i}",
            native_amount="0" if kind == StepKind.APPROVE else "500000000",
            asset=USDT,
            kind=kind,
        )
        for i, kind in enumerate(kinds)
    )
    return Quote(
        request=SwapRequest(USDT, ETH, "500000000"),
        backend="dry_run",
        from_native_amount="500000000",
        to_native_amount="128205128205128205",
        deposit_address=steps[-1].target_address,
        expiration=time.time() + 60 if expiration is None else expiration,
        is_estimate=False,
        order_id="order-1",
        steps=steps,
        payout_address="payout-addr",
        refund_address="refund-addr",
    )


class TestExecuteQuote:
    """Tests for execute_quote."""

    @pytest.mark.asyncio
    async def test_single_step(self):
        wallet = InMemoryWallet()
        quote = make_quote()

        result = await execute_quote(quote, wallet)

        assert result.txids == ("txid-0",)
        assert result.swap_txid == "txid-0"
        assert result.order_id == "order-1"
        assert result.destination_address == "payout-addr"
        assert quote.execution.state == QuoteState.COMPLETED
        assert wallet.recorded[0].txid == "txid-0"

    @pytest.mark.asyncio
    async def test_steps_run_in_order(self):
        """Step i+1 is signed only after step i is broadcast."""
        wallet = InMemoryWallet()
        quote = make_quote((StepKind.APPROVE, StepKind.SWAP))

        result = await execute_quote(quote, wallet)

        assert wallet.events == [
            ("sign", 0),
            ("broadcast", 0),
            ("sign", 1),
            ("broadcast", 1),
        ]
        assert result.txids == ("txid-0", "txid-1")
        assert result.step_states == (StepState.CONFIRMED, StepState.CONFIRMED)
        assert [s.step.kind for s in wallet.recorded] == [StepKind.APPROVE, StepKind.SWAP]

    @pytest.mark.asyncio
    async def test_partial_failure(self):
        """Second signing fails after the approval was broadcast."""
        wallet = InMemoryWallet(fail_sign_at=1)
        quote = make_quote((StepKind.APPROVE, StepKind.SWAP))

        with pytest.raises(PartialExecutionFailure) as exc:
            await execute_quote(quote, wallet)

        error = exc.value
        assert error.completed_steps == [0]
        assert error.failed_step == 1
        assert error.txids == ["txid-0"]
        assert isinstance(error.cause, RuntimeError)
        assert quote.execution.state == QuoteState.FAILED
        assert quote.execution.step_states == [StepState.CONFIRMED, StepState.FAILED]
        assert ("broadcast", 1) not in wallet.events

    @pytest.mark.asyncio
    async def test_first_step_failure(self):
        wallet = InMemoryWallet(fail_broadcast_at=0)
        quote = make_quote((StepKind.APPROVE, StepKind.SWAP))

        with pytest.raises(ExecutionFailedError) as exc:
            await execute_quote(quote, wallet)

        assert not isinstance(exc.value, PartialExecutionFailure)
        assert exc.value.completed_steps == []
        assert exc.value.failed_step == 0
        assert wallet.recorded == []
        assert ("sign", 1) not in wallet.events

    @pytest.mark.asyncio
    async def test_expired_quote(self):
        wallet = InMemoryWallet()
        quote = make_quote(expiration=1000.0)

        with pytest.raises(QuoteExpiredError):
            await execute_quote(quote, wallet, now=1000.5)

        assert wallet.events == []
        assert quote.execution.state == QuoteState.UNEXECUTED

    @pytest.mark.asyncio
    async def test_executes_at_most_once(self):
        wallet = InMemoryWallet()
        quote = make_quote()

        first = await execute_quote(quote, wallet)
        second = await execute_quote(quote, wallet)

        assert second is first
        assert wallet.events == [("sign", 0), ("broadcast", 0)]

    @pytest.mark.asyncio
    async def test_failed_quote_reraises(self):
        wallet = InMemoryWallet(fail_sign_at=0)
        quote = make_quote()

        with pytest.raises(ExecutionFailedError) as first:
            await execute_quote(quote, wallet)
        with pytest.raises(ExecutionFailedError) as second:
            await execute_quote(quote, wallet)

        assert second.value is first.value
        assert wallet.events == [("sign", 0)]

    @pytest.mark.asyncio
    async def test_recording_failure_keeps_broadcast_step(self):
        """A broadcast step is reported completed even if recording fails."""
        wallet = UnrecordedWallet()
        quote = make_quote()

        with pytest.raises(PartialExecutionFailure) as exc:
            await execute_quote(quote, wallet)

        error = exc.value
        assert error.completed_steps == [0]
        assert error.failed_step == 0
        assert error.txids == ["txid-0"]
        assert error.failed_after_broadcast
        assert isinstance(error.cause, OSError)
        assert quote.execution.state == QuoteState.FAILED
        assert quote.execution.step_states == [StepState.CONFIRMED]
        assert quote.execution.txids == ["txid-0"]

    @pytest.mark.asyncio
    async def test_recording_failure_stops_later_steps(self):
        wallet = UnrecordedWallet()
        quote = make_quote((StepKind.APPROVE, StepKind.SWAP))

        with pytest.raises(PartialExecutionFailure) as exc:
            await execute_quote(quote, wallet)

        assert exc.value.completed_steps == [0]
        assert wallet.events == [("sign", 0), ("broadcast", 0)]

    @pytest.mark.asyncio
    async def test_signing_failure_is_not_after_broadcast(self):
        wallet = InMemoryWallet(fail_sign_at=1)
        quote = make_quote((StepKind.APPROVE, StepKind.SWAP))

        with pytest.raises(PartialExecutionFailure) as exc:
            await execute_quote(quote, wallet)

        assert not exc.value.failed_after_broadcast

    @pytest.mark.asyncio
    async def test_executing_quote_rejected(self):
        wallet = InMemoryWallet()
        quote = make_quote()
        quote.execution.state = QuoteState.EXECUTING

        with pytest.raises(ExecutionInProgressError):
            await execute_quote(quote, wallet)

        assert wallet.events == []
