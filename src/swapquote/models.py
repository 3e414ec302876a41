"""Data model shared by every backend: assets, requests, steps and quotes."""

import re
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional

_NATIVE_RE = re.compile(r"^[0-9]+$")


def is_native_amount(value: object) -> bool:
    """Check that a value is a non-negative integer string."""
    return isinstance(value, str) and bool(_NATIVE_RE.match(value))


class QuoteDirection(str, Enum):
    """Which side of the swap the request amount is expressed on."""

    FROM = "from"
    TO = "to"
    MAX = "max"


@dataclass(frozen=True)
class Asset:
    """A wallet asset: a network's parent currency or one of its tokens."""

    network: str  # wallet network id, e.g. "bitcoin", "ethereum"
    currency_code: str  # e.g. "BTC", "USDT"
    decimals: int
    token_id: Optional[str] = None  # contract address for tokens

    @property
    def is_token(self) -> bool:
        return self.token_id is not None

    def normalized(self) -> "Asset":
        return replace(
            self,
            network=self.network.strip().lower(),
            currency_code=self.currency_code.strip().upper(),
        )

    def __str__(self) -> str:
        return f"{self.currency_code}@{self.network}"


@dataclass(frozen=True)
class SwapRequest:
    """A caller's request for a swap quote.

    native_amount is in units of from_asset when quote_for is "from" and
    of to_asset when quote_for is "to". It is ignored for "max".
    """

    from_asset: Asset
    to_asset: Asset
    native_amount: str
    quote_for: QuoteDirection = QuoteDirection.FROM

    def __post_init__(self):
        if not is_native_amount(self.native_amount):
            raise ValueError(
                f"native_amount must be a non-negative integer string, got {self.native_amount!r}"
            )
        if not isinstance(self.quote_for, QuoteDirection):
            object.__setattr__(self, "quote_for", QuoteDirection(self.quote_for))

    @property
    def amount_asset(self) -> Asset:
        """Asset the native amount is expressed in."""
        return self.to_asset if self.quote_for == QuoteDirection.TO else self.from_asset

    @property
    def side(self) -> str:
        return "to" if self.quote_for == QuoteDirection.TO else "from"

    def normalized(self) -> "SwapRequest":
        return replace(
            self,
            from_asset=self.from_asset.normalized(),
            to_asset=self.to_asset.normalized(),
            native_amount=self.native_amount.lstrip("0") or "0",
        )

    def with_amount(
        self, native_amount: str, quote_for: QuoteDirection = QuoteDirection.FROM
    ) -> "SwapRequest":
        return replace(self, native_amount=native_amount, quote_for=quote_for)


@dataclass(frozen=True)
class ReceiveAddress:
    """An address as reported by the wallet runtime."""

    public_address: str
    legacy_address: Optional[str] = None


@dataclass(frozen=True)
class SwapAddresses:
    """Addresses chosen for one request."""

    from_address: str  # refund address
    to_address: str  # payout address


class StepKind(str, Enum):
    TRANSFER = "transfer"
    APPROVE = "approve"
    SWAP = "swap"


@dataclass(frozen=True)
class TransactionStep:
    """One transaction the wallet must sign and broadcast to fulfil a quote."""

    target_address: str
    native_amount: str
    asset: Asset
    kind: StepKind = StepKind.TRANSFER
    payload: Optional[str] = None  # contract call data
    memo: Optional[str] = None
    fee_override: Optional[dict[str, Any]] = None


@dataclass(frozen=True)
class RawTransaction:
    """A transaction as described by a multi-step backend."""

    kind: StepKind
    to: str
    value: str
    data: Optional[str] = None
    gas_limit: Optional[str] = None
    gas_price: Optional[str] = None  # wei
    tx_id: Optional[str] = None


@dataclass(frozen=True)
class RawQuote:
    """A backend reply after the adapter's schema parse.

    Amounts and limits are denomination strings unless the field name says
    native. min_amount and max_amount apply to limit_side.
    """

    backend: str
    deposit_address: Optional[str] = None
    deposit_extra_id: Optional[str] = None
    order_id: Optional[str] = None
    order_uri: Optional[str] = None
    min_amount: Optional[str] = None
    max_amount: Optional[str] = None
    limit_side: str = "from"
    from_amount: Optional[str] = None
    to_amount: Optional[str] = None
    from_native_amount: Optional[str] = None
    to_native_amount: Optional[str] = None
    network_fee: Optional[str] = None  # native units of the parent currency
    transactions: tuple[RawTransaction, ...] = ()
    is_estimate: bool = True
    extra: dict[str, Any] = field(default_factory=dict)


class QuoteState(str, Enum):
    UNEXECUTED = "unexecuted"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


class StepState(str, Enum):
    PENDING = "pending"
    SIGNING = "signing"
    BROADCASTING = "broadcasting"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class ExecutionRecord:
    """Mutable execution progress of a single quote."""

    state: QuoteState = QuoteState.UNEXECUTED
    step_states: list[StepState] = field(default_factory=list)
    txids: list[str] = field(default_factory=list)
    result: Optional[Any] = None
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class Quote:
    """A time-boxed, backend-committed exchange offer ready for execution.

    The terms are immutable. Execution progress lives in the attached
    ExecutionRecord, which only the execution sequencer updates, so a quote
    is consumed at most once.
    """

    request: SwapRequest
    backend: str
    from_native_amount: str
    to_native_amount: str
    deposit_address: str
    expiration: float  # unix timestamp, seconds
    is_estimate: bool
    order_id: Optional[str]
    steps: tuple[TransactionStep, ...]
    payout_address: str
    refund_address: str
    memo: Optional[str] = None
    order_uri: Optional[str] = None
    created_at: float = field(default_factory=time.time)
    execution: ExecutionRecord = field(
        default_factory=ExecutionRecord, compare=False, repr=False
    )

    def is_expired(self, now: Optional[float] = None) -> bool:
        return (time.time() if now is None else now) > self.expiration

    @property
    def seconds_until_expiry(self) -> float:
        """Seconds until the quote expires (negative if expired)."""
        return self.expiration - time.time()

    @property
    def swap_step(self) -> TransactionStep:
        """The step that carries the actual swap send (always the last one)."""
        return self.steps[-1]

    def to_dict(self) -> dict:
        """Convert to a plain dictionary for logging or display."""
        return {
            "backend": self.backend,
            "from": str(self.request.from_asset),
            "to": str(self.request.to_asset),
            "from_native_amount": self.from_native_amount,
            "to_native_amount": self.to_native_amount,
            "deposit_address": self.deposit_address,
            "memo": self.memo,
            "order_id": self.order_id,
            "order_uri": self.order_uri,
            "expiration": self.expiration,
            "is_estimate": self.is_estimate,
            "steps": [step.kind.value for step in self.steps],
        }
