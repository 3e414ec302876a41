"""Assembly of backend-agnostic Quotes from raw backend replies."""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from swapquote.amounts import floor_native, to_native
from swapquote.errors import BackendProtocolError
from swapquote.models import (
    Quote,
    RawQuote,
    StepKind,
    SwapAddresses,
    SwapRequest,
    TransactionStep,
    is_native_amount,
)
from swapquote.policy import fee_option
from swapquote.routing.base import QuoteFetcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedAmounts:
    """Quoted amounts in wallet native units."""

    from_native_amount: str
    to_native_amount: str


def resolve_amounts(request: SwapRequest, raw_quote: RawQuote) -> ResolvedAmounts:
    """Express the reply's amounts in native units of each wallet, flooring."""

    def pick(native: Optional[str], denomination: Optional[str], side: str) -> str:
        asset = request.from_asset if side == "from" else request.to_asset
        if native is not None:
            return floor_native(native)
        if denomination is not None:
            return to_native(denomination, asset)
        if request.side == side:
            return request.native_amount
        raise BackendProtocolError(raw_quote.backend, 200, f"reply has no {side} amount")

    return ResolvedAmounts(
        from_native_amount=pick(raw_quote.from_native_amount, raw_quote.from_amount, "from"),
        to_native_amount=pick(raw_quote.to_native_amount, raw_quote.to_amount, "to"),
    )


def _build_steps(
    fetcher: QuoteFetcher,
    request: SwapRequest,
    raw_quote: RawQuote,
    amounts: ResolvedAmounts,
) -> tuple[TransactionStep, ...]:
    if not raw_quote.transactions:
        if fetcher.is_dex:
            raise BackendProtocolError(fetcher.name, 200, "reply has no transactions")
        # Central exchange: a single send to the deposit address
        if not raw_quote.deposit_address:
            raise BackendProtocolError(fetcher.name, 200, "reply has no deposit address")
        return (
            TransactionStep(
                target_address=raw_quote.deposit_address,
                native_amount=amounts.from_native_amount,
                asset=request.from_asset,
                kind=StepKind.TRANSFER,
                memo=raw_quote.deposit_extra_id,
                fee_override={"fee_option": fee_option(fetcher.policy, request.from_asset)},
            ),
        )

    swap_tx = raw_quote.transactions[-1]
    if swap_tx.kind == StepKind.APPROVE:
        raise BackendProtocolError(fetcher.name, 200, "last transaction is an approval")

    # Steps send the contract-call value. Token sources move tokens through
    # the call data, so only a native-coin swap must carry the quoted amount.
    for tx in raw_quote.transactions:
        if not is_native_amount(tx.value):
            raise BackendProtocolError(fetcher.name, 200, f"invalid transaction value {tx.value!r}")
    if not request.from_asset.is_token and swap_tx.value != amounts.from_native_amount:
        raise BackendProtocolError(
            fetcher.name,
            200,
            f"swap value {swap_tx.value} does not match quoted amount {amounts.from_native_amount}",
        )

    steps = []
    for tx in raw_quote.transactions:
        fee_override = None
        if tx.gas_limit is not None and tx.gas_price is not None:
            fee_override = {"gas_limit": tx.gas_limit, "gas_price": tx.gas_price}

        steps.append(
            TransactionStep(
                target_address=tx.to,
                native_amount=tx.value,
                asset=request.from_asset,
                kind=tx.kind,
                payload=tx.data,
                fee_override=fee_override,
            )
        )
    return tuple(steps)


def assemble(
    request: SwapRequest,
    raw_quote: RawQuote,
    resolved_amounts: ResolvedAmounts,
    addresses: SwapAddresses,
    fetcher: QuoteFetcher,
    now: Optional[float] = None,
) -> Quote:
    """Build a Quote from the authoritative backend reply.

    Args:
        request: The request the reply answers
        raw_quote: Authoritative (order) reply
        resolved_amounts: Native amounts on both sides
        addresses: Payout and refund addresses sent to the backend
        fetcher: Backend, providing its policy and quote lifetime
        now: Creation time (defaults to the current time)

    Returns:
        Immutable Quote expiring after the backend's quote lifetime
    """
    created = time.time() if now is None else now
    steps = _build_steps(fetcher, request, raw_quote, resolved_amounts)

    quote = Quote(
        request=request,
        backend=fetcher.name,
        from_native_amount=resolved_amounts.from_native_amount,
        to_native_amount=resolved_amounts.to_native_amount,
        deposit_address=raw_quote.deposit_address or steps[-1].target_address,
        expiration=created + fetcher.quote_lifetime_seconds,
        is_estimate=raw_quote.is_estimate,
        order_id=raw_quote.order_id,
        steps=steps,
        payout_address=addresses.to_address,
        refund_address=addresses.from_address,
        memo=raw_quote.deposit_extra_id,
        order_uri=raw_quote.order_uri,
        created_at=created,
    )
    logger.info(
        f"Assembled {fetcher.name} quote {quote.order_id}: "
        f"{quote.from_native_amount} {request.from_asset} -> "
        f"{quote.to_native_amount} {request.to_asset}, {len(steps)} step(s), "
        f"expires in {fetcher.quote_lifetime_seconds}s"
    )
    return quote
