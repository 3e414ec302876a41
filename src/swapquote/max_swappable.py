"""Resolution of "swap my whole balance" requests.

The spendable amount is the balance minus the network fee reserved for the
spend, but the fee may itself depend on the amount (percentage fee models).
The resolver iterates estimate calls until the candidate stops moving.
"""

import logging
from typing import Optional

from swapquote.amounts import native_to_int
from swapquote.errors import InsufficientFundsError
from swapquote.models import QuoteDirection, SwapRequest
from swapquote.routing.base import QuoteFetcher
from swapquote.wallet import WalletRuntime

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 8


async def resolve_max_swappable(
    fetcher: QuoteFetcher,
    request: SwapRequest,
    wallet: WalletRuntime,
    max_iterations: Optional[int] = None,
) -> SwapRequest:
    """Turn a "max" request into a concrete "from" request.

    Args:
        fetcher: Backend whose estimate reports the fee reservation
        request: Request with quote_for == "max"
        wallet: Wallet runtime providing the balance
        max_iterations: Iteration budget (default 8)

    Returns:
        Copy of the request with quote_for="from" and the resolved amount

    Raises:
        InsufficientFundsError: If nothing is left after reserving fees
    """
    if request.quote_for != QuoteDirection.MAX:
        return request

    budget = max_iterations or DEFAULT_MAX_ITERATIONS
    balance = native_to_int(await wallet.get_balance(request.from_asset))
    if balance <= 0:
        raise InsufficientFundsError(
            f"No {request.from_asset.currency_code} balance to swap", fetcher.name
        )

    # Tokens pay network fees in the parent currency
    if request.from_asset.is_token:
        logger.debug(f"Max swappable {request.from_asset}: token balance {balance}")
        return request.with_amount(str(balance), QuoteDirection.FROM)

    candidate = balance
    safe: Optional[int] = None
    for iteration in range(1, budget + 1):
        estimate = await fetcher.estimate(
            request.with_amount(str(candidate), QuoteDirection.FROM)
        )
        fee = native_to_int(estimate.network_fee or "0")
        next_candidate = balance - fee
        logger.debug(
            f"Max swappable iteration {iteration}: candidate={candidate} fee={fee} "
            f"next={next_candidate}"
        )

        if next_candidate <= 0:
            raise InsufficientFundsError(
                f"Balance {balance} does not cover the network fee {fee}", fetcher.name
            )

        if candidate <= next_candidate:
            safe = candidate if safe is None else max(safe, candidate)

        # Keep the lower value so balance always covers amount + fee
        if abs(next_candidate - candidate) <= 1:
            candidate = min(candidate, next_candidate)
            break
        candidate = next_candidate
    else:
        logger.warning(
            f"Max swappable for {request.from_asset} did not converge in {budget} iterations"
        )
        if safe is not None:
            candidate = safe

    logger.info(f"Resolved max swappable {request.from_asset}: {candidate} of {balance}")
    return request.with_amount(str(candidate), QuoteDirection.FROM)
