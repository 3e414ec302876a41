"""Swap engine - orchestrates one backend from request to executable quote.

Flow:
1. Normalize the request and validate it against the backend's policy
2. Resolve "max" requests (concurrently with the receive-address lookups)
3. Estimate and enforce the backend's declared limits
4. Perform the authoritative quote / order call
5. Assemble the Quote; the caller later executes it
"""

import asyncio
import logging
from typing import Optional

from swapquote.assembler import assemble, resolve_amounts
from swapquote.config import Settings, get_settings
from swapquote.execution import ExecutionResult, execute_quote
from swapquote.limits import check_raw_quote_limits
from swapquote.max_swappable import resolve_max_swappable
from swapquote.models import Asset, Quote, QuoteDirection, SwapAddresses, SwapRequest
from swapquote.policy import check_invalid_codes, enforce_whitelisted_networks, select_address
from swapquote.routing.base import QuoteFetcher
from swapquote.wallet import WalletRuntime

logger = logging.getLogger(__name__)


class SwapEngine:
    """Runs the quote flow for a single backend.

    Holds no per-request state, so concurrent requests are independent.
    """

    def __init__(
        self,
        fetcher: QuoteFetcher,
        wallet: WalletRuntime,
        settings: Optional[Settings] = None,
    ):
        self.fetcher = fetcher
        self.wallet = wallet
        self.settings = settings or get_settings()

    def validate(self, request: SwapRequest) -> SwapRequest:
        """Normalize a request and reject pairs the backend cannot service."""
        request = request.normalized()
        check_invalid_codes(self.fetcher.policy, request, self.fetcher.name)
        if self.fetcher.whitelist_networks:
            enforce_whitelisted_networks(self.fetcher.policy, request, self.fetcher.name)
        return request

    async def _get_address(self, asset: Asset) -> str:
        address = await self.wallet.get_receive_address(asset)
        return select_address(self.fetcher.policy, asset, address)

    async def get_addresses(self, request: SwapRequest) -> SwapAddresses:
        from_address, to_address = await asyncio.gather(
            self._get_address(request.from_asset),
            self._get_address(request.to_asset),
        )
        return SwapAddresses(from_address=from_address, to_address=to_address)

    async def fetch_quote(self, request: SwapRequest) -> Quote:
        """
        Get an executable quote from the backend.

        Args:
            request: The caller's swap request

        Returns:
            Quote with ordered transaction steps and an expiration

        Raises:
            UnsupportedPairError: Pair rejected by policy or backend
            LimitViolation: Amount outside the backend's declared limits
            InsufficientFundsError: Nothing left to swap after fees
            BackendUnavailableError: Backend unreachable
            BackendProtocolError: Backend returned an error or malformed reply
        """
        request = self.validate(request)
        logger.info(
            f"Quote requested from {self.fetcher.name}: {request.native_amount} "
            f"{request.from_asset} -> {request.to_asset} ({request.quote_for.value})"
        )

        if request.quote_for == QuoteDirection.MAX:
            request, addresses = await asyncio.gather(
                resolve_max_swappable(
                    self.fetcher,
                    request,
                    self.wallet,
                    self.settings.max_swappable_iterations,
                ),
                self.get_addresses(request),
            )
        else:
            addresses = await self.get_addresses(request)

        estimate = await self.fetcher.estimate(request)
        check_raw_quote_limits(request, estimate)

        raw_quote = await self.fetcher.fetch_raw_quote(request, addresses)
        check_raw_quote_limits(request, raw_quote)

        amounts = resolve_amounts(request, raw_quote)
        return assemble(request, raw_quote, amounts, addresses, self.fetcher)

    async def execute(self, quote: Quote) -> ExecutionResult:
        """Execute a quote previously returned by fetch_quote."""
        return await execute_quote(quote, self.wallet)
