"""Pytest configuration and fixtures."""

import os
from typing import Optional

import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DRY_RUN"] = "false"
os.environ["DEBUG"] = "true"
os.environ["GODEX_API_URL"] = "https://godex.test/api/v1/"
os.environ["TOTLE_API_URL"] = "https://totle.test"

from swapquote.models import Asset, ReceiveAddress, TransactionStep
from swapquote.wallet import SignedTransaction

BTC = Asset(network="bitcoin", currency_code="BTC", decimals=8)
ETH = Asset(network="ethereum", currency_code="ETH", decimals=18)
USDT = Asset(
    network="ethereum",
    currency_code="USDT",
    decimals=6,
    token_id="0xdac17f958d2ee523a2206206994597c13d831ec7",
)
DAI = Asset(
    network="ethereum",
    currency_code="DAI",
    decimals=18,
    token_id="0x6b175474e89094c44da98b954eedcdeb5be3830",
)


class InMemoryWallet:
    """Wallet runtime double recording every call in order."""

    def __init__(
        self,
        balances: Optional[dict[str, str]] = None,
        addresses: Optional[dict[str, ReceiveAddress]] = None,
        fail_sign_at: Optional[int] = None,
        fail_broadcast_at: Optional[int] = None,
    ):
        self.balances = balances or {}
        self.addresses = addresses or {}
        self.fail_sign_at = fail_sign_at
        self.fail_broadcast_at = fail_broadcast_at
        self.events: list[tuple[str, int]] = []
        self.recorded: list[SignedTransaction] = []
        self._signed = 0
        self._broadcast = 0

    async def get_receive_address(self, asset: Asset) -> ReceiveAddress:
        return self.addresses.get(
            asset.currency_code,
            ReceiveAddress(public_address=f"{asset.currency_code.lower()}-address"),
        )

    async def get_balance(self, asset: Asset) -> str:
        return self.balances.get(asset.currency_code, "0")

    async def sign(self, step: TransactionStep) -> SignedTransaction:
        index = self._signed
        self._signed += 1
        self.events.append(("sign", index))
        if index == self.fail_sign_at:
            raise RuntimeError("user rejected signing")
        return SignedTransaction(step=step, raw=f"signed-{index}")

    async def broadcast(self, signed: SignedTransaction) -> str:
        index = self._broadcast
        self._broadcast += 1
        self.events.append(("broadcast", index))
        if index == self.fail_broadcast_at:
            raise ConnectionError("node rejected transaction")
        return f"txid-{index}"

    async def record_transaction(self, signed: SignedTransaction) -> None:
        self.recorded.append(signed)


@pytest.fixture
def wallet() -> InMemoryWallet:
    """Wallet holding 1 BTC, 2 ETH and 500 USDT."""
    return InMemoryWallet(
        balances={
            "BTC": "100000000",
            "ETH": "2000000000000000000",
            "USDT": "500000000",
        }
    )
