"""Network fee models used to estimate the fee reserved from a spend.

Central exchanges do not report the on-chain fee of the deposit transaction,
so their adapters estimate it with one of these models.
"""

from dataclasses import dataclass
from decimal import ROUND_UP, Decimal, localcontext
from typing import Protocol

from swapquote.amounts import native_to_int


class FeeModel(Protocol):
    def estimate(self, native_amount: str) -> str:
        """Return the native fee reserved for spending native_amount."""
        ...


@dataclass(frozen=True)
class FlatFee:
    """Fee that does not depend on the amount sent."""

    native_fee: str = "0"

    def estimate(self, native_amount: str) -> str:
        return self.native_fee


@dataclass(frozen=True)
class PercentageFee:
    """Fee proportional to the amount sent, plus an optional flat part.

    percent is a fraction (0.01 = 1%). Rounded up to whole native units so
    that the reservation always covers the fee.
    """

    percent: Decimal
    minimum_fee: str = "0"

    def estimate(self, native_amount: str) -> str:
        with localcontext() as ctx:
            ctx.prec = 120
            proportional = (Decimal(native_to_int(native_amount)) * self.percent).to_integral_value(
                rounding=ROUND_UP
            )
        return str(max(int(proportional), native_to_int(self.minimum_fee)))
