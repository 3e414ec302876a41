"""Godex central exchange integration.

Godex quotes a fixed deposit address per order. The flow is an "info" call
(minimum amount and supported networks) followed by a "transaction" call that
creates the order. Reverse quotes use the "-revert" endpoints.
API docs: https://godex.io/api-docs
"""

import logging
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from swapquote.amounts import to_denomination
from swapquote.config import get_settings
from swapquote.errors import UnsupportedPairError
from swapquote.fees import FeeModel, PercentageFee
from swapquote.limits import check_raw_quote_limits
from swapquote.models import QuoteDirection, RawQuote, SwapAddresses, SwapRequest
from swapquote.policy import ALL_CODES, CurrencyPolicy, transcribe_pair
from swapquote.routing.base import BackendClient, NumberString, QuoteFetcher

logger = logging.getLogger(__name__)

ORDER_URI = "https://godex.io/exchange/waiting/"


class GodexNetwork(BaseModel):
    network: str


class GodexInfo(BaseModel):
    """Reply of the info / info-revert endpoints."""

    min_amount: NumberString
    max_amount: Optional[NumberString] = None
    amount: Optional[NumberString] = None
    networks_from: Optional[list[GodexNetwork]] = None
    networks_to: Optional[list[GodexNetwork]] = None


class GodexTransaction(BaseModel):
    """Reply of the transaction / transaction-revert endpoints."""

    transaction_id: str
    deposit: str
    deposit_extra_id: Optional[str] = None
    deposit_amount: NumberString
    withdrawal: str
    withdrawal_extra_id: Optional[str] = None
    withdrawal_amount: NumberString
    return_address: Optional[str] = Field(default=None, alias="return")
    return_extra_id: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


# Network names that don't match the parent network currency code
# See https://godex.io/exchange-rate for the list of supported currencies
MAINNET_CODE_TRANSCRIPTION = {
    "algorand": "ALGO",
    "arbitrum": "ARBITRUM",
    "avalanche": "AVAXC",
    "binance": "BNB",
    "binancesmartchain": "BSC",
    "bitcoin": "BTC",
    "bitcoincash": "BCH",
    "cardano": "ADA",
    "celo": "CELO",
    "cosmoshub": "ATOM",
    "dash": "DASH",
    "digibyte": "DGB",
    "dogecoin": "DOGE",
    "eos": "EOS",
    "ethereumclassic": "ETC",
    "ethereum": "ETH",
    "fantom": "FTM",
    "filecoin": "FIL",
    "hedera": "HBAR",
    "litecoin": "LTC",
    "optimism": "OPTIMISM",
    "monero": "XMR",
    "polygon": "MATIC",
    "polkadot": "DOT",
    "qtum": "QTUM",
    "ravencoin": "RVN",
    "rsk": "RSK",
    "stellar": "XLM",
    "solana": "SOL",
    "tezos": "XTZ",
    "tron": "TRX",
    "ton": "TON",
    "zcash": "ZEC",
    "zcoin": "FIRO",
}

GODEX_POLICY = CurrencyPolicy(
    disallowed_from={"digibyte": ALL_CODES},
    # Godex can't send to unified zcash addresses
    disallowed_to={"zcash": frozenset({"ZEC"})},
    transcription=MAINNET_CODE_TRANSCRIPTION,
    no_legacy_codes=frozenset({"DGB"}),
    high_fee_codes=frozenset({"BTC"}),
)


class GodexFetcher(QuoteFetcher):
    """Godex central exchange backend.

    Only networks present in the transcription table are supported.
    """

    whitelist_networks = True

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        quote_lifetime_seconds: Optional[int] = None,
        fee_model: Optional[FeeModel] = None,
        promo_code: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize Godex backend.

        Args:
            api_url: API base URL (from settings if None)
            api_key: Affiliate id sent with orders
            quote_lifetime_seconds: Quote validity (from settings if None)
            fee_model: Estimates the network fee of the deposit transaction
            promo_code: Optional promo code appended to order creation
            client: Shared httpx client (tests inject a MockTransport here)
        """
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.godex_api_key
        self._lifetime = quote_lifetime_seconds or settings.get_quote_lifetime(self.name)
        self.fee_model = fee_model or PercentageFee(settings.godex_network_fee_percent)
        self.promo_code = promo_code
        self.client = BackendClient(
            self.name,
            api_url or settings.godex_api_url,
            timeout=settings.http_timeout_seconds,
            client=client,
            unsupported_statuses=(422,),
            headers={"Content-Type": "application/json"},
        )

    @property
    def name(self) -> str:
        return "godex"

    @property
    def policy(self) -> CurrencyPolicy:
        return GODEX_POLICY

    @property
    def quote_lifetime_seconds(self) -> int:
        return self._lifetime

    async def estimate(self, request: SwapRequest) -> RawQuote:
        """Get the minimum amount and check the networks are enabled.

        The info endpoints don't accept the network params, so min_amount may
        belong to a different network than the one requested. Order creation
        re-validates the amount, so the approximation is accepted.
        """
        reverse = request.quote_for == QuoteDirection.TO
        quote_amount = to_denomination(request.native_amount, request.amount_asset)
        params = {
            "from": request.from_asset.currency_code,
            "to": request.to_asset.currency_code,
            "amount": quote_amount,
        }
        logger.debug(f"Godex quote params: {params}")

        data = await self.client.request(
            "POST", "info-revert" if reverse else "info", request, json=params
        )
        info = self.client.parse(GodexInfo, data)

        raw_quote = RawQuote(
            backend=self.name,
            min_amount=info.min_amount,
            max_amount=info.max_amount,
            limit_side=request.side,
            from_amount=info.amount if reverse else quote_amount,
            to_amount=quote_amount if reverse else info.amount,
            network_fee=None if reverse else self.fee_model.estimate(request.native_amount),
            is_estimate=True,
        )

        # Networks aren't present for disabled assets. A below-minimum amount
        # is reported first, as Godex itself does.
        from_network, to_network = transcribe_pair(self.policy, request)
        if not any(n.network == from_network for n in info.networks_from or []) or not any(
            n.network == to_network for n in info.networks_to or []
        ):
            check_raw_quote_limits(request, raw_quote)
            raise UnsupportedPairError(
                self.name,
                request.from_asset.currency_code,
                request.to_asset.currency_code,
                "network disabled",
            )

        return raw_quote

    async def fetch_raw_quote(
        self, request: SwapRequest, addresses: SwapAddresses
    ) -> RawQuote:
        """Create the Godex order bound to our payout and refund addresses."""
        reverse = request.quote_for == QuoteDirection.TO
        quote_amount = to_denomination(request.native_amount, request.amount_asset)
        from_network, to_network = transcribe_pair(self.policy, request)

        body = {
            "deposit_amount": None if reverse else quote_amount,
            "withdrawal_amount": quote_amount if reverse else None,
            "coin_from": request.from_asset.currency_code,
            "coin_to": request.to_asset.currency_code,
            "withdrawal": addresses.to_address,
            "return": addresses.from_address,
            "return_extra_id": None,
            "withdrawal_extra_id": None,
            "affiliate_id": self.api_key,
            "type": "edge",
            "isEstimate": False,
            "coin_from_network": from_network,
            "coin_to_network": to_network,
        }
        params = {"promo": self.promo_code} if self.promo_code else None

        data = await self.client.request(
            "POST",
            "transaction-revert" if reverse else "transaction",
            request,
            json=body,
            params=params,
        )
        order = self.client.parse(GodexTransaction, data)
        logger.info(f"Godex order {order.transaction_id} created, deposit to {order.deposit}")

        return RawQuote(
            backend=self.name,
            deposit_address=order.deposit,
            deposit_extra_id=order.deposit_extra_id,
            order_id=order.transaction_id,
            order_uri=ORDER_URI + order.transaction_id,
            from_amount=order.deposit_amount,
            to_amount=order.withdrawal_amount,
            is_estimate=False,
        )
