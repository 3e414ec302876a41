"""Dry-run backend for simulated swaps.

Quotes from simulated USD prices, without any network access. Used when
DRY_RUN is enabled and as the deterministic backend in tests.
"""

import hashlib
import logging
from decimal import Decimal
from typing import Optional

from swapquote.amounts import to_denomination, to_native
from swapquote.errors import UnsupportedPairError
from swapquote.fees import FeeModel, FlatFee
from swapquote.models import (
    QuoteDirection,
    RawQuote,
    RawTransaction,
    StepKind,
    SwapAddresses,
    SwapRequest,
)
from swapquote.policy import CurrencyPolicy
from swapquote.routing.base import QuoteFetcher

logger = logging.getLogger(__name__)

# Simulated market prices in USD, for demonstration only
SIMULATED_PRICES: dict[str, Decimal] = {
    "BTC": Decimal("100000.00"),
    "ETH": Decimal("3900.00"),
    "LTC": Decimal("115.00"),
    "DASH": Decimal("48.00"),
    "BCH": Decimal("480.00"),
    "DOGE": Decimal("0.42"),
    "SOL": Decimal("225.00"),
    "TRX": Decimal("0.27"),
    "XMR": Decimal("195.00"),
    "USDT": Decimal("1.00"),
    "USDC": Decimal("1.00"),
    "DAI": Decimal("1.00"),
}

APPROVE_SELECTOR = "0x095ea7b3"


class DryRunExchange(QuoteFetcher):
    """
    Simulated exchange.

    Provides deterministic quotes with:
    - Configurable spread and limits
    - A pluggable network fee model
    - Either a single deposit step or an approve + swap sequence
    """

    def __init__(
        self,
        spread_percent: Decimal = Decimal("0.0"),
        min_amount: Optional[str] = None,
        max_amount: Optional[str] = None,
        fee_model: Optional[FeeModel] = None,
        policy: Optional[CurrencyPolicy] = None,
        quote_lifetime_seconds: int = 60,
        multi_step: bool = False,
        deposit_address: Optional[str] = None,
    ):
        """Initialize the simulated exchange.

        Args:
            spread_percent: Fraction kept by the exchange (0.01 = 1%)
            min_amount: Declared minimum, in denomination of the request side
            max_amount: Declared maximum, in denomination of the request side
            fee_model: Network fee reserved from the amount sent
            policy: Currency policy (permissive if None)
            quote_lifetime_seconds: Quote validity
            multi_step: Answer with an approve + swap transaction list
            deposit_address: Fixed deposit address (derived per order if None)
        """
        self.spread_percent = spread_percent
        self.min_amount = min_amount
        self.max_amount = max_amount
        self.fee_model = fee_model or FlatFee()
        self._policy = policy or CurrencyPolicy()
        self._lifetime = quote_lifetime_seconds
        self.multi_step = multi_step
        self.is_dex = multi_step
        self.deposit_address = deposit_address
        self._prices = SIMULATED_PRICES.copy()
        self.estimate_calls = 0
        self.order_calls = 0

    @property
    def name(self) -> str:
        return "dry_run"

    @property
    def policy(self) -> CurrencyPolicy:
        return self._policy

    @property
    def quote_lifetime_seconds(self) -> int:
        return self._lifetime

    def set_price(self, currency_code: str, price: Decimal) -> None:
        """Set simulated price for a currency."""
        self._prices[currency_code.upper()] = price

    def _convert(self, request: SwapRequest) -> tuple[str, str]:
        """Return (from_amount, to_amount) denominations for a request."""
        from_code = request.from_asset.currency_code
        to_code = request.to_asset.currency_code
        from_price = self._prices.get(from_code)
        to_price = self._prices.get(to_code)
        if from_price is None or to_price is None:
            raise UnsupportedPairError(self.name, from_code, to_code, "no simulated price")

        rate = from_price / to_price * (1 - self.spread_percent)
        amount = Decimal(to_denomination(request.native_amount, request.amount_asset))
        if request.quote_for == QuoteDirection.TO:
            return str(amount / rate), str(amount)
        return str(amount), str(amount * rate)

    async def estimate(self, request: SwapRequest) -> RawQuote:
        self.estimate_calls += 1
        from_amount, to_amount = self._convert(request)

        network_fee = None
        if not request.from_asset.is_token:
            from_native = to_native(from_amount, request.from_asset)
            network_fee = self.fee_model.estimate(from_native)

        return RawQuote(
            backend=self.name,
            min_amount=self.min_amount,
            max_amount=self.max_amount,
            limit_side=request.side,
            from_amount=from_amount,
            to_amount=to_amount,
            network_fee=network_fee,
            is_estimate=True,
        )

    async def fetch_raw_quote(
        self, request: SwapRequest, addresses: SwapAddresses
    ) -> RawQuote:
        self.order_calls += 1
        from_amount, to_amount = self._convert(request)

        order_data = f"{request.from_asset}{request.to_asset}{request.native_amount}{self.order_calls}"
        order_id = hashlib.sha256(order_data.encode()).hexdigest()[:16]
        deposit = self.deposit_address or f"sim-deposit-{order_id}"
        logger.info(f"Simulated order {order_id}: {from_amount} -> {to_amount}")

        transactions: tuple[RawTransaction, ...] = ()
        if self.multi_step:
            from_native = to_native(from_amount, request.from_asset)
            transactions = (
                RawTransaction(
                    kind=StepKind.APPROVE,
                    to=request.from_asset.token_id or deposit,
                    value="0",
                    data=f"{APPROVE_SELECTOR}{deposit}",
                    gas_limit="60000",
                    gas_price="30000000000",
                ),
                RawTransaction(
                    kind=StepKind.SWAP,
                    to=deposit,
                    # Tokens move through the call data, not the call value
                    value="0" if request.from_asset.is_token else from_native,
                    data="0xswap",
                    gas_limit="250000",
                    gas_price="30000000000",
                ),
            )

        return RawQuote(
            backend=self.name,
            deposit_address=deposit,
            deposit_extra_id=None,
            order_id=order_id,
            from_amount=from_amount,
            to_amount=to_amount,
            transactions=transactions,
            is_estimate=False,
        )
