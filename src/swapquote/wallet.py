"""Interface of the wallet runtime the engine consumes.

The engine never inspects wallet internals. It only asks for addresses and
balances, and hands TransactionSteps over for signing and broadcast.
"""

from dataclasses import dataclass
from typing import Any, Optional, Protocol, runtime_checkable

from swapquote.models import Asset, ReceiveAddress, TransactionStep


@dataclass
class SignedTransaction:
    """A signed transaction as produced by the wallet runtime."""

    step: TransactionStep
    raw: Any
    txid: Optional[str] = None


@runtime_checkable
class WalletRuntime(Protocol):
    async def get_receive_address(self, asset: Asset) -> ReceiveAddress:
        ...

    async def get_balance(self, asset: Asset) -> str:
        """Spendable balance in native units."""
        ...

    async def sign(self, step: TransactionStep) -> SignedTransaction:
        ...

    async def broadcast(self, signed: SignedTransaction) -> str:
        """Broadcast a signed transaction and return its txid."""
        ...

    async def record_transaction(self, signed: SignedTransaction) -> None:
        ...
