"""Quote fetchers for swap backends.

Backends:
- Godex: central exchange, single deposit transaction with extra-id
- Totle: Ethereum DEX aggregator, approve + swap transactions
- Dry run: simulated exchange for testing
"""

from swapquote.routing.base import BackendClient, QuoteFetcher
from swapquote.routing.dry_run import DryRunExchange
from swapquote.routing.factory import available_backends, create_fetcher
from swapquote.routing.godex import GodexFetcher
from swapquote.routing.totle import TotleFetcher

__all__ = [
    # Base classes
    "QuoteFetcher",
    "BackendClient",
    # Backends
    "GodexFetcher",
    "TotleFetcher",
    "DryRunExchange",
    # Factory
    "create_fetcher",
    "available_backends",
]
