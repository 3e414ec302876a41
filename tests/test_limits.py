"""Tests for limit enforcement."""

import pytest

from swapquote.errors import BoundKind, LimitViolation
from swapquote.limits import check_bounds, check_raw_quote_limits
from swapquote.models import QuoteDirection, RawQuote, SwapRequest

from conftest import BTC, ETH


class TestCheckBounds:
    """Tests for native bound checks."""

    def test_within_bounds(self):
        check_bounds("500", "100", "1000", "from")

    def test_bounds_are_inclusive(self):
        check_bounds("100", "100", "1000", "from")
        check_bounds("1000", "100", "1000", "from")

    def test_below_minimum(self):
        with pytest.raises(LimitViolation) as exc:
            check_bounds("99", "100", "1000", "from", "godex")

        assert exc.value.bound_kind == BoundKind.BELOW_MINIMUM
        assert exc.value.bound == "100"
        assert exc.value.side == "from"
        assert exc.value.backend == "godex"

    def test_above_maximum(self):
        with pytest.raises(LimitViolation) as exc:
            check_bounds("1001", "100", "1000", "to")

        assert exc.value.bound_kind == BoundKind.ABOVE_MAXIMUM
        assert exc.value.bound == "1000"
        assert exc.value.side == "to"

    def test_minimum_checked_first(self):
        """Inverted bounds violated on both ends report the minimum."""
        with pytest.raises(LimitViolation) as exc:
            check_bounds("50", "100", "10", "from")

        assert exc.value.bound_kind == BoundKind.BELOW_MINIMUM

    def test_missing_bounds_skipped(self):
        check_bounds("1", None, None, "from")
        check_bounds("1000000000000000000000000", "1", None, "from")


class TestRawQuoteLimits:
    """Tests for limits declared in denominations."""

    def request(self, amount: str, quote_for=QuoteDirection.FROM) -> SwapRequest:
        return SwapRequest(BTC, ETH, amount, quote_for)

    def test_converts_denomination_limits(self):
        raw = RawQuote(backend="godex", min_amount="0.001", max_amount="10")

        with pytest.raises(LimitViolation) as exc:
            check_raw_quote_limits(self.request("10000"), raw)

        assert exc.value.bound_kind == BoundKind.BELOW_MINIMUM
        assert exc.value.bound == "100000"

    def test_above_maximum_in_native_units(self):
        raw = RawQuote(backend="godex", min_amount="0.001", max_amount="10")

        with pytest.raises(LimitViolation) as exc:
            check_raw_quote_limits(self.request("1000000001"), raw)

        assert exc.value.bound_kind == BoundKind.ABOVE_MAXIMUM
        assert exc.value.bound == "1000000000"

    def test_accepts_amount_in_range(self):
        raw = RawQuote(backend="godex", min_amount="0.001", max_amount="10")
        check_raw_quote_limits(self.request("100000000"), raw)

    def test_no_limits(self):
        check_raw_quote_limits(self.request("1"), RawQuote(backend="totle"))

    def test_limits_on_other_side(self):
        """A to-side minimum is compared with the quoted to amount."""
        raw = RawQuote(
            backend="godex",
            min_amount="0.5",
            limit_side="to",
            from_amount="0.01",
            to_amount="0.25",
        )

        with pytest.raises(LimitViolation) as exc:
            check_raw_quote_limits(self.request("1000000"), raw)

        assert exc.value.side == "to"
        assert exc.value.bound == "500000000000000000"

    def test_reverse_request_limits(self):
        raw = RawQuote(backend="godex", min_amount="1", limit_side="to")

        with pytest.raises(LimitViolation) as exc:
            check_raw_quote_limits(
                self.request("500000000000000000", QuoteDirection.TO), raw
            )

        assert exc.value.bound == "1000000000000000000"
