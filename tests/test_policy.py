"""Tests for per-backend currency policies."""

import pytest

from swapquote.errors import UnsupportedPairError
from swapquote.models import Asset, ReceiveAddress, SwapRequest
from swapquote.policy import (
    ALL_CODES,
    ALL_TOKENS,
    CurrencyPolicy,
    check_invalid_codes,
    enforce_whitelisted_networks,
    fee_option,
    is_pair_allowed,
    select_address,
    transcribe,
    transcribe_pair,
)
from swapquote.routing.godex import GODEX_POLICY
from swapquote.routing.totle import TOTLE_POLICY

from conftest import BTC, ETH, USDT

DGB = Asset(network="digibyte", currency_code="DGB", decimals=8)
ZEC = Asset(network="zcash", currency_code="ZEC", decimals=8)
LTC = Asset(network="litecoin", currency_code="LTC", decimals=8)
XYZ = Asset(network="xyzchain", currency_code="XYZ", decimals=8)
BNB = Asset(network="binancesmartchain", currency_code="BNB", decimals=18)
CAKE = Asset(
    network="binancesmartchain",
    currency_code="CAKE",
    decimals=18,
    token_id="0x0e09fabb73bd3ade0a17ecc321fd13a19e81ce82",
)

CUSTOM_POLICY = CurrencyPolicy(
    disallowed_from={"binancesmartchain": ALL_TOKENS},
    disallowed_to={"litecoin": ALL_CODES, "ethereum": frozenset({"USDT"})},
)


def pair(from_asset: Asset, to_asset: Asset) -> SwapRequest:
    return SwapRequest(from_asset=from_asset, to_asset=to_asset, native_amount="100000")


class TestDisallowTables:
    """Data-driven checks of the disallow tables."""

    @pytest.mark.parametrize(
        "policy,from_asset,to_asset,allowed",
        [
            (GODEX_POLICY, BTC, ETH, True),
            (GODEX_POLICY, DGB, BTC, False),  # whole network disallowed as source
            (GODEX_POLICY, BTC, DGB, True),  # receiving DGB is fine
            (GODEX_POLICY, BTC, ZEC, False),  # specific code disallowed as target
            (GODEX_POLICY, ZEC, BTC, True),
            (TOTLE_POLICY, ETH, USDT, True),
            (CUSTOM_POLICY, BNB, BTC, True),  # parent currency allowed
            (CUSTOM_POLICY, CAKE, BTC, False),  # its tokens are not
            (CUSTOM_POLICY, BTC, LTC, False),
            (CUSTOM_POLICY, BTC, USDT, False),
            (CUSTOM_POLICY, BTC, ETH, True),
        ],
    )
    def test_is_pair_allowed(self, policy, from_asset, to_asset, allowed):
        assert is_pair_allowed(policy, pair(from_asset, to_asset)) is allowed

    def test_check_invalid_codes_raises(self):
        with pytest.raises(UnsupportedPairError) as exc:
            check_invalid_codes(GODEX_POLICY, pair(DGB, BTC), "godex")

        assert exc.value.backend == "godex"
        assert exc.value.from_code == "DGB"
        assert exc.value.to_code == "BTC"
        assert not exc.value.retryable

    def test_check_invalid_codes_passes(self):
        check_invalid_codes(GODEX_POLICY, pair(BTC, ETH), "godex")

    def test_empty_policy_allows_everything(self):
        assert is_pair_allowed(CurrencyPolicy(), pair(CAKE, ZEC))


class TestTranscription:
    """Tests for network label transcription and whitelisting."""

    def test_transcribe_known_network(self):
        assert transcribe(GODEX_POLICY, "bitcoin") == "BTC"
        assert transcribe(GODEX_POLICY, "binancesmartchain") == "BSC"

    def test_transcribe_unknown_network_unchanged(self):
        assert transcribe(CUSTOM_POLICY, "bitcoin") == "bitcoin"

    def test_transcribe_pair(self):
        assert transcribe_pair(GODEX_POLICY, pair(BTC, ETH)) == ("BTC", "ETH")

    def test_whitelist_rejects_unlisted_network(self):
        with pytest.raises(UnsupportedPairError, match="xyzchain"):
            enforce_whitelisted_networks(GODEX_POLICY, pair(BTC, XYZ), "godex")

    def test_whitelist_accepts_listed_networks(self):
        enforce_whitelisted_networks(GODEX_POLICY, pair(BTC, ETH), "godex")

    def test_totle_is_ethereum_only(self):
        enforce_whitelisted_networks(TOTLE_POLICY, pair(ETH, USDT), "totle")
        with pytest.raises(UnsupportedPairError):
            enforce_whitelisted_networks(TOTLE_POLICY, pair(BTC, ETH), "totle")


class TestAddressAndFee:
    """Tests for address selection and fee priority."""

    def test_legacy_address_preferred(self):
        address = ReceiveAddress(public_address="ltc1qnew", legacy_address="Lold")
        assert select_address(GODEX_POLICY, LTC, address) == "Lold"

    def test_legacy_address_excluded_for_code(self):
        address = ReceiveAddress(public_address="dgb1qnew", legacy_address="Dold")
        assert select_address(GODEX_POLICY, DGB, address) == "dgb1qnew"

    def test_public_address_without_legacy(self):
        address = ReceiveAddress(public_address="bc1qabc")
        assert select_address(GODEX_POLICY, BTC, address) == "bc1qabc"

    def test_fee_option(self):
        assert fee_option(GODEX_POLICY, BTC) == "high"
        assert fee_option(GODEX_POLICY, LTC) == "standard"
        assert fee_option(TOTLE_POLICY, BTC) == "standard"
