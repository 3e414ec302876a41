"""Enforcement of backend-declared minimum and maximum amounts."""

import logging
from typing import Optional

from swapquote.amounts import NumberLike, native_to_int, to_native
from swapquote.errors import BoundKind, LimitViolation
from swapquote.models import RawQuote, SwapRequest

logger = logging.getLogger(__name__)


def check_bounds(
    resolved_native_amount: NumberLike,
    minimum: Optional[NumberLike],
    maximum: Optional[NumberLike],
    side: str,
    backend: Optional[str] = None,
) -> None:
    """Check a native amount against native min/max bounds.

    The minimum is checked first, so an amount violating both reports
    below-minimum. Missing bounds are skipped.

    Raises:
        LimitViolation: With the violated bound in native units
    """
    amount = native_to_int(resolved_native_amount)

    if minimum is not None and amount < native_to_int(minimum):
        logger.info(f"{backend}: {amount} is below the {side} minimum {minimum}")
        raise LimitViolation(BoundKind.BELOW_MINIMUM, str(minimum), side, backend)

    if maximum is not None and amount > native_to_int(maximum):
        logger.info(f"{backend}: {amount} is above the {side} maximum {maximum}")
        raise LimitViolation(BoundKind.ABOVE_MAXIMUM, str(maximum), side, backend)


def check_raw_quote_limits(request: SwapRequest, raw_quote: RawQuote) -> None:
    """Check a request amount against the limits declared in a backend reply.

    Limits arrive as denominations of raw_quote.limit_side and are converted
    to native units of that side's asset before comparison.
    """
    if raw_quote.min_amount is None and raw_quote.max_amount is None:
        return

    asset = request.to_asset if raw_quote.limit_side == "to" else request.from_asset
    native_min = to_native(raw_quote.min_amount, asset) if raw_quote.min_amount else None
    native_max = to_native(raw_quote.max_amount, asset) if raw_quote.max_amount else None

    if raw_quote.limit_side == request.side:
        amount = request.native_amount
    elif raw_quote.limit_side == "to" and raw_quote.to_amount is not None:
        amount = to_native(raw_quote.to_amount, asset)
    elif raw_quote.limit_side == "from" and raw_quote.from_amount is not None:
        amount = to_native(raw_quote.from_amount, asset)
    else:
        logger.debug(f"{raw_quote.backend}: no amount on the {raw_quote.limit_side} side to check")
        return

    check_bounds(amount, native_min, native_max, raw_quote.limit_side, raw_quote.backend)
