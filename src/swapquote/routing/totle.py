"""Totle DEX aggregator integration.

Totle answers a swap request with an ordered list of Ethereum transactions:
an optional token approval followed by the swap call. The swap transaction is
always the last one.
"""

import logging
from decimal import Decimal, localcontext
from typing import Any, Literal, Optional

import httpx
from pydantic import BaseModel, Field

from swapquote.amounts import scale_by_rate
from swapquote.config import get_settings
from swapquote.errors import (
    BackendProtocolError,
    InsufficientFundsError,
    InvalidAmountError,
    UnsupportedPairError,
)
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
from swapquote.routing.base import BackendClient, NativeString, NumberString, QuoteFetcher

logger = logging.getLogger(__name__)

# Totle error codes
ERROR_AMOUNT = 1201
ERROR_TOKEN_NOT_FOUND = 1203
ERROR_INSUFFICIENT_FUNDS = 3100

# Fallback reservation for estimates: 300k gas at 30 gwei
DEFAULT_SWAP_FEE_WEI = str(300_000 * 30 * 10**9)


class TotleToken(BaseModel):
    name: str = ""
    symbol: str
    decimals: int
    address: str
    tradable: bool = True


class TotleTokens(BaseModel):
    tokens: list[TotleToken]


class TotleAsset(BaseModel):
    address: str
    symbol: str
    decimals: str


class TotleSummary(BaseModel):
    source_asset: TotleAsset = Field(alias="sourceAsset")
    source_amount: NativeString = Field(alias="sourceAmount")
    destination_asset: TotleAsset = Field(alias="destinationAsset")
    destination_amount: NativeString = Field(alias="destinationAmount")
    rate: NumberString
    guaranteed_rate: NumberString = Field(alias="guaranteedRate")


class TotleTx(BaseModel):
    to: str
    value: NativeString
    data: str
    gas_price: NativeString = Field(alias="gasPrice")
    gas: NativeString
    nonce: Optional[str] = None


class TotleTransaction(BaseModel):
    type: Literal["approve", "swap"]
    id: str
    tx: TotleTx


class TotleSwapResponse(BaseModel):
    id: str
    summary: list[TotleSummary]
    transactions: list[TotleTransaction] = Field(default_factory=list)


class TotleSwapReply(BaseModel):
    success: Literal[True]
    response: TotleSwapResponse


class TotleErrorDetail(BaseModel):
    code: int
    message: str
    id: Optional[str] = None
    info: Optional[str] = None


class TotleErrorReply(BaseModel):
    success: Literal[False]
    response: TotleErrorDetail


TOTLE_POLICY = CurrencyPolicy(transcription={"ethereum": "ethereum"})


class TotleFetcher(QuoteFetcher):
    """Totle DEX aggregator backend (Ethereum only)."""

    whitelist_networks = True
    is_dex = True

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        partner_contract: Optional[str] = None,
        quote_lifetime_seconds: Optional[int] = None,
        fee_model: Optional[FeeModel] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.totle_api_key
        self.partner_contract = partner_contract or settings.totle_partner_contract
        self._lifetime = quote_lifetime_seconds or settings.get_quote_lifetime(self.name)
        self.fee_model = fee_model or FlatFee(DEFAULT_SWAP_FEE_WEI)
        self.client = BackendClient(
            self.name,
            api_url or settings.totle_api_url,
            timeout=settings.http_timeout_seconds,
            client=client,
            headers={"Content-Type": "application/json"},
        )

    @property
    def name(self) -> str:
        return "totle"

    @property
    def policy(self) -> CurrencyPolicy:
        return TOTLE_POLICY

    @property
    def quote_lifetime_seconds(self) -> int:
        return self._lifetime

    async def _find_tokens(self, request: SwapRequest) -> tuple[TotleToken, TotleToken]:
        data = await self.client.request("GET", "tokens", request)
        tokens = self.client.parse(TotleTokens, data).tokens
        by_symbol = {t.symbol: t for t in tokens}

        from_token = by_symbol.get(request.from_asset.currency_code)
        to_token = by_symbol.get(request.to_asset.currency_code)
        if not from_token or not to_token or from_token.symbol == to_token.symbol:
            raise UnsupportedPairError(
                self.name,
                request.from_asset.currency_code,
                request.to_asset.currency_code,
                "token not listed",
            )
        return from_token, to_token

    def _check_reply(self, data: Any, request: SwapRequest) -> TotleSwapResponse:
        """Map Totle error replies onto the error taxonomy."""
        if isinstance(data, dict) and data.get("success") is False:
            error = self.client.parse(TotleErrorReply, data).response
            if error.code == ERROR_TOKEN_NOT_FOUND:
                raise UnsupportedPairError(
                    self.name,
                    request.from_asset.currency_code,
                    request.to_asset.currency_code,
                    error.message,
                )
            if error.code == ERROR_INSUFFICIENT_FUNDS:
                raise InsufficientFundsError(error.message, self.name)
            if error.code == ERROR_AMOUNT:
                raise InvalidAmountError(f"Totle rejected the amount: {error.message}", self.name)
            raise BackendProtocolError(self.name, 200, f"{error.code} {error.message}")
        return self.client.parse(TotleSwapReply, data).response

    async def _swap(
        self,
        request: SwapRequest,
        from_token: TotleToken,
        to_token: TotleToken,
        addresses: Optional[SwapAddresses],
    ) -> TotleSwapResponse:
        amount_key = (
            "destinationAmount" if request.quote_for == QuoteDirection.TO else "sourceAmount"
        )
        swap: dict[str, Any] = {
            "sourceAsset": from_token.address,
            "destinationAsset": to_token.address,
            amount_key: request.native_amount,
        }
        body: dict[str, Any] = {
            "config": {"transactions": addresses is not None},
            "swap": swap,
            "partnerContract": self.partner_contract,
            "apiKey": self.api_key,
        }
        if addresses is not None:
            body["address"] = addresses.from_address
            swap["destinationAddress"] = addresses.to_address

        data = await self.client.request("POST", "swap", request, json=body)
        response = self._check_reply(data, request)
        if not response.summary:
            raise BackendProtocolError(self.name, 200, "reply has no summary")
        return response

    def _amounts(self, request: SwapRequest, summary: TotleSummary) -> tuple[str, str]:
        """Derive native amounts on both sides from the guaranteed rate."""
        rate = Decimal(summary.guaranteed_rate)
        if request.quote_for == QuoteDirection.TO:
            to_native_amount = summary.destination_amount
            inverse = _inverse_rate(rate, self.name)
            from_native_amount = scale_by_rate(
                to_native_amount, request.to_asset, request.from_asset, inverse
            )
            return from_native_amount, to_native_amount

        from_native_amount = summary.source_amount
        to_native_amount = scale_by_rate(
            from_native_amount, request.from_asset, request.to_asset, rate
        )
        return from_native_amount, to_native_amount

    async def estimate(self, request: SwapRequest) -> RawQuote:
        from_token, to_token = await self._find_tokens(request)
        response = await self._swap(request, from_token, to_token, addresses=None)
        from_native_amount, to_native_amount = self._amounts(request, response.summary[0])

        # Token swaps pay gas in ETH, which is not the asset being spent
        network_fee = None
        if not request.from_asset.is_token:
            network_fee = self.fee_model.estimate(from_native_amount)

        return RawQuote(
            backend=self.name,
            from_native_amount=from_native_amount,
            to_native_amount=to_native_amount,
            network_fee=network_fee,
            is_estimate=True,
        )

    async def fetch_raw_quote(
        self, request: SwapRequest, addresses: SwapAddresses
    ) -> RawQuote:
        from_token, to_token = await self._find_tokens(request)
        response = await self._swap(request, from_token, to_token, addresses)
        from_native_amount, to_native_amount = self._amounts(request, response.summary[0])

        if not response.transactions:
            raise BackendProtocolError(self.name, 200, "reply has no transactions")

        transactions = tuple(
            RawTransaction(
                kind=StepKind.APPROVE if t.type == "approve" else StepKind.SWAP,
                to=t.tx.to,
                value=t.tx.value,
                data=t.tx.data,
                gas_limit=t.tx.gas,
                gas_price=t.tx.gas_price,
                tx_id=t.id,
            )
            for t in response.transactions
        )
        network_fee = sum(int(t.gas_limit) * int(t.gas_price) for t in transactions)
        logger.info(
            f"Totle swap {response.id}: {len(transactions)} transaction(s), "
            f"gas reservation {network_fee} wei"
        )

        return RawQuote(
            backend=self.name,
            deposit_address=transactions[-1].to,
            order_id=response.id,
            from_native_amount=from_native_amount,
            to_native_amount=to_native_amount,
            network_fee=str(network_fee),
            transactions=transactions,
            is_estimate=False,
        )


def _inverse_rate(rate: Decimal, backend: str) -> str:
    if rate <= 0:
        raise BackendProtocolError(backend, 200, f"invalid rate {rate}")
    with localcontext() as ctx:
        ctx.prec = 60
        return str(Decimal(1) / rate)
