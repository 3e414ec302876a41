"""Per-backend currency code policy.

Every backend quirk about which currencies it accepts is expressed as data:
disallow tables for each leg, a mainnet-name transcription table, codes that
must not use legacy addresses, and codes that need a high fee priority.
"""

import logging
from dataclasses import dataclass, field
from typing import Mapping, Union

from swapquote.errors import UnsupportedPairError
from swapquote.models import Asset, ReceiveAddress, SwapRequest

logger = logging.getLogger(__name__)

# Disallow rules for a network
ALL_CODES = "allCodes"  # the whole network is unsupported
ALL_TOKENS = "allTokens"  # the parent currency is fine, its tokens are not

DisallowRule = Union[str, frozenset[str]]


@dataclass(frozen=True)
class CurrencyPolicy:
    """Currency support table for one backend.

    Attributes:
        disallowed_from: network id -> rule, for the leg being sent
        disallowed_to: network id -> rule, for the leg being received
        transcription: wallet network id -> backend network label
        no_legacy_codes: codes whose legacy address format must not be used
        high_fee_codes: codes that should be sent with a high fee priority
    """

    disallowed_from: Mapping[str, DisallowRule] = field(default_factory=dict)
    disallowed_to: Mapping[str, DisallowRule] = field(default_factory=dict)
    transcription: Mapping[str, str] = field(default_factory=dict)
    no_legacy_codes: frozenset[str] = frozenset()
    high_fee_codes: frozenset[str] = frozenset()


def _leg_disallowed(table: Mapping[str, DisallowRule], asset: Asset) -> bool:
    rule = table.get(asset.network)
    if rule is None:
        return False
    if rule == ALL_CODES:
        return True
    if rule == ALL_TOKENS:
        return asset.is_token
    return asset.currency_code in rule


def is_pair_allowed(policy: CurrencyPolicy, request: SwapRequest) -> bool:
    """Check both legs of a request against the disallow tables."""
    return not (
        _leg_disallowed(policy.disallowed_from, request.from_asset)
        or _leg_disallowed(policy.disallowed_to, request.to_asset)
    )


def check_invalid_codes(
    policy: CurrencyPolicy, request: SwapRequest, backend: str = ""
) -> None:
    """Raise UnsupportedPairError if either leg is disallowed."""
    if not is_pair_allowed(policy, request):
        logger.debug(
            f"{backend}: pair {request.from_asset} -> {request.to_asset} disallowed by policy"
        )
        raise UnsupportedPairError(
            backend,
            request.from_asset.currency_code,
            request.to_asset.currency_code,
            "currency code disallowed",
        )


def transcribe(policy: CurrencyPolicy, network_id: str) -> str:
    """Map a wallet network id to the backend's label (unchanged if unmapped)."""
    return policy.transcription.get(network_id, network_id)


def transcribe_pair(policy: CurrencyPolicy, request: SwapRequest) -> tuple[str, str]:
    return (
        transcribe(policy, request.from_asset.network),
        transcribe(policy, request.to_asset.network),
    )


def enforce_whitelisted_networks(
    policy: CurrencyPolicy, request: SwapRequest, backend: str = ""
) -> None:
    """Reject requests touching a network the transcription table does not list."""
    for asset in (request.from_asset, request.to_asset):
        if asset.network not in policy.transcription:
            raise UnsupportedPairError(
                backend,
                request.from_asset.currency_code,
                request.to_asset.currency_code,
                f"network {asset.network} not supported",
            )


def select_address(
    policy: CurrencyPolicy, asset: Asset, address: ReceiveAddress
) -> str:
    """Prefer the legacy address format unless the code opts out of it."""
    if address.legacy_address and asset.currency_code not in policy.no_legacy_codes:
        return address.legacy_address
    return address.public_address


def fee_option(policy: CurrencyPolicy, asset: Asset) -> str:
    return "high" if asset.currency_code in policy.high_fee_codes else "standard"
