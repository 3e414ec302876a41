"""Factory for creating quote fetchers from settings.

Creates real backends unless dry-run mode is enabled, in which case every
backend name resolves to the simulated exchange.
"""

import logging
from typing import Callable, Optional

import httpx

from swapquote.config import get_settings
from swapquote.routing.base import QuoteFetcher

logger = logging.getLogger(__name__)


def create_godex_fetcher(client: Optional[httpx.AsyncClient] = None) -> QuoteFetcher:
    """Create Godex central exchange backend."""
    from swapquote.routing.godex import GodexFetcher

    return GodexFetcher(client=client)


def create_totle_fetcher(client: Optional[httpx.AsyncClient] = None) -> QuoteFetcher:
    """Create Totle DEX aggregator backend."""
    settings = get_settings()
    if not settings.totle_api_key:
        logger.warning("TOTLE_API_KEY not set - Totle quotes will be unauthenticated")

    from swapquote.routing.totle import TotleFetcher

    return TotleFetcher(client=client)


def create_dry_run_fetcher(client: Optional[httpx.AsyncClient] = None) -> QuoteFetcher:
    """Create the simulated exchange."""
    from swapquote.routing.dry_run import DryRunExchange

    return DryRunExchange()


_FACTORIES: dict[str, Callable[[Optional[httpx.AsyncClient]], QuoteFetcher]] = {
    "godex": create_godex_fetcher,
    "totle": create_totle_fetcher,
    "dry_run": create_dry_run_fetcher,
}


def available_backends() -> list[str]:
    """List of backend names the factory can build."""
    return list(_FACTORIES)


def create_fetcher(name: str, client: Optional[httpx.AsyncClient] = None) -> QuoteFetcher:
    """Create a quote fetcher by backend name.

    Args:
        name: Backend identifier (e.g. 'godex', 'totle', 'dry_run')
        client: Optional shared httpx client

    Returns:
        QuoteFetcher for the backend (the simulated one in dry-run mode)

    Raises:
        ValueError: If the backend name is unknown
    """
    key = name.lower()
    if key not in _FACTORIES:
        raise ValueError(f"Unknown backend '{name}', expected one of {available_backends()}")

    if get_settings().dry_run and key != "dry_run":
        logger.info(f"Dry-run mode: using simulated exchange instead of {key}")
        return create_dry_run_fetcher(client)

    fetcher = _FACTORIES[key](client)
    logger.info(f"Created {fetcher.name} backend")
    return fetcher
