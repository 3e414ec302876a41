"""Abstract quote fetcher interface and shared HTTP plumbing for backends."""

import logging
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Iterable, Optional, TypeVar

import httpx
from pydantic import BaseModel, BeforeValidator, ValidationError

from swapquote.errors import (
    BackendProtocolError,
    BackendUnavailableError,
    UnsupportedPairError,
)
from swapquote.models import RawQuote, SwapAddresses, SwapRequest, is_native_amount
from swapquote.policy import CurrencyPolicy, enforce_whitelisted_networks, is_pair_allowed

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _as_number_string(value: Any) -> Any:
    """Accept JSON numbers or numeric strings, reject anything else.

    Backends send some amounts as numbers and some as strings. Values that
    are not finite non-negative decimals fail validation here instead of
    breaking amount conversion later.
    """
    if isinstance(value, bool):
        raise ValueError("expected a number")
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str):
        raise ValueError("expected a number")
    try:
        number = Decimal(value.strip())
    except InvalidOperation:
        raise ValueError(f"not a number: {value!r}")
    if not number.is_finite() or number < 0:
        raise ValueError(f"not a non-negative amount: {value!r}")
    return value.strip()


NumberString = Annotated[str, BeforeValidator(_as_number_string)]


def _as_native_string(value: Any) -> Any:
    """Accept integer amounts in the smallest unit only."""
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if not is_native_amount(value):
        raise ValueError(f"not a native amount: {value!r}")
    return value


NativeString = Annotated[str, BeforeValidator(_as_native_string)]


class BackendClient:
    """Thin JSON-over-HTTP client that classifies failures.

    Transport failures become BackendUnavailableError, the backend's
    "unsupported pair" statuses become UnsupportedPairError and any other
    non-2xx reply becomes BackendProtocolError. Never retries.
    """

    def __init__(
        self,
        backend: str,
        base_url: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
        unsupported_statuses: Iterable[int] = (),
        headers: Optional[dict[str, str]] = None,
    ):
        """Initialize the client.

        Args:
            backend: Backend name used in errors and logs
            base_url: Base URL all paths are relative to
            timeout: Per-request timeout in seconds
            client: Shared AsyncClient (a new one is opened per call if None)
            unsupported_statuses: HTTP statuses meaning "pair not supported"
            headers: Extra headers sent with every request
        """
        self.backend = backend
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client
        self.unsupported_statuses = frozenset(unsupported_statuses)
        self.headers = {"Accept": "application/json", **(headers or {})}

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        if self._client is not None:
            return await self._client.request(method, url, headers=self.headers, **kwargs)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.request(method, url, headers=self.headers, **kwargs)

    async def request(
        self,
        method: str,
        path: str,
        request: SwapRequest,
        json: Optional[Any] = None,
        params: Optional[dict] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body."""
        url = self._url(path)
        logger.debug(f"{self.backend} {method} {url} params={params} body={json}")

        try:
            response = await self._send(method, url, json=json, params=params)
        except httpx.TransportError as e:
            logger.warning(f"{self.backend} unreachable: {type(e).__name__}: {e}")
            raise BackendUnavailableError(
                f"{self.backend} unreachable: {e}", self.backend
            ) from e

        if response.status_code in self.unsupported_statuses:
            raise UnsupportedPairError(
                self.backend,
                request.from_asset.currency_code,
                request.to_asset.currency_code,
                f"HTTP {response.status_code}",
            )

        if not response.is_success:
            logger.warning(f"{self.backend} API error: {response.status_code} - {response.text}")
            raise BackendProtocolError(self.backend, response.status_code, response.text[:200])

        try:
            data = response.json()
        except ValueError as e:
            raise BackendProtocolError(
                self.backend, response.status_code, "reply is not valid JSON"
            ) from e

        logger.debug(f"{self.backend} reply: {data}")
        return data

    def parse(self, schema: type[ModelT], data: Any) -> ModelT:
        """Validate a reply against the adapter's schema."""
        try:
            return schema.model_validate(data)
        except ValidationError as e:
            raise BackendProtocolError(
                self.backend, 200, f"unexpected reply shape: {e.error_count()} error(s)"
            ) from e


class QuoteFetcher(ABC):
    """Abstract base class for swap backends.

    A fetcher only knows its backend's wire format. Validation, limits,
    max-swappable resolution and quote assembly are done by the engine.
    """

    #: whether the engine must reject networks absent from the transcription table
    whitelist_networks: bool = False
    #: on-chain protocol (multi-step) rather than a central exchange
    is_dex: bool = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name identifier."""
        pass

    @property
    @abstractmethod
    def policy(self) -> CurrencyPolicy:
        """Currency code policy of this backend."""
        pass

    @property
    def quote_lifetime_seconds(self) -> int:
        return 60

    @abstractmethod
    async def estimate(self, request: SwapRequest) -> RawQuote:
        """
        Get a preliminary, side-effect free estimate.

        The reply carries the declared limits and, where known, the network
        fee reserved for sending request.native_amount.
        """
        pass

    @abstractmethod
    async def fetch_raw_quote(
        self, request: SwapRequest, addresses: SwapAddresses
    ) -> RawQuote:
        """
        Perform the authoritative quote call.

        This may create an order on the backend and must be called at most
        once per Quote.
        """
        pass

    def supports_pair(self, request: SwapRequest) -> bool:
        """Check the policy tables without raising."""
        if not is_pair_allowed(self.policy, request):
            return False
        if self.whitelist_networks:
            try:
                enforce_whitelisted_networks(self.policy, request, self.name)
            except UnsupportedPairError:
                return False
        return True
