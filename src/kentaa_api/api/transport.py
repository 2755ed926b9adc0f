"""HTTP transport for the Kentaa REST API using httpx.

The transport executes one RequestDescriptor and translates the outcome:
decoded body plus the X-RateLimit-Remaining-* values on success, and a
KentaaTransportError subclass (still carrying those values) on failure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from kentaa_api.config import HttpConfig, get_settings
from kentaa_api.logging import bind_request, get_logger

from .exceptions import (
    KentaaAPIError,
    KentaaAuthenticationError,
    KentaaNotFoundError,
    KentaaRateLimitError,
    KentaaTransportError,
)
from .pacing.request import RequestDescriptor
from .rate_limit.schemas import RateLimitHeaders

logger = get_logger(__name__)

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


@dataclass(frozen=True)
class TransportResponse:
    """Outcome of a successful call."""

    status_code: int
    body: Any
    rate_limit: RateLimitHeaders = field(default_factory=RateLimitHeaders)


class Transport(Protocol):
    """Executes request descriptors against the remote API."""

    async def execute(self, descriptor: RequestDescriptor) -> TransportResponse: ...


class HttpTransport:
    """Async Kentaa transport on top of httpx.AsyncClient.

    Usage:
        async with HttpTransport(api_key="...") as transport:
            response = await transport.execute(RequestDescriptor(path="sites/current"))
            print(response.body, response.rate_limit.remaining_minute)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        *,
        config: HttpConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            api_key: Kentaa API key, sent as X-Api-Key
            base_url: API base URL (uses settings if not provided)
            config: HTTP settings (uses settings if not provided)
            client: Optional preconfigured httpx client; it is not closed by close()
        """
        settings = get_settings()
        self._api_key = api_key
        self._base_url = (base_url or settings.kentaa_base_url).rstrip("/") + "/"
        self._config = config or settings.http
        self._client = client
        self._owns_client = client is None

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def _http(self) -> httpx.AsyncClient:
        """Get or create the httpx client instance."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout_seconds,
            )
        return self._client

    def _default_headers(self) -> dict[str, str]:
        return {
            "X-Api-Key": self._api_key,
            "Accept": "application/json",
            "User-Agent": self._config.user_agent,
        }

    async def close(self) -> None:
        """Close the underlying HTTP client (if this transport created it)."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> HttpTransport:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------
    async def execute(self, descriptor: RequestDescriptor) -> TransportResponse:
        """Execute one API call.

        Args:
            descriptor: The call to make

        Returns:
            TransportResponse with decoded JSON body and rate limit values

        Raises:
            KentaaAuthenticationError: 401
            KentaaNotFoundError: 404
            KentaaRateLimitError: 429
            KentaaAPIError: Any other non-2xx status
            KentaaTransportError: Network-level failure
        """
        request_kwargs: dict[str, Any] = {}
        if descriptor.params:
            request_kwargs["params"] = list(descriptor.params)
        if descriptor.body is not None and descriptor.method in _BODY_METHODS:
            request_kwargs["json"] = descriptor.body

        try:
            response = await self._http.request(
                descriptor.method,
                self._base_url + descriptor.path,
                headers=self._default_headers(),
                **request_kwargs,
            )
        except httpx.HTTPError as e:
            raise KentaaTransportError(f"{descriptor} failed: {e}") from e

        rate_limit = RateLimitHeaders.from_response_headers(response.headers)
        bind_request(descriptor).debug(
            "Response {} (minute={}, hour={})",
            response.status_code,
            rate_limit.remaining_minute,
            rate_limit.remaining_hour,
        )
        body = _decode_body(response)

        if response.is_success:
            return TransportResponse(
                status_code=response.status_code,
                body=body,
                rate_limit=rate_limit,
            )

        raise self._handle_error(descriptor, response.status_code, body, rate_limit)

    # -------------------------------------------------------------------------
    # Error Handling
    # -------------------------------------------------------------------------
    def _handle_error(
        self,
        descriptor: RequestDescriptor,
        status: int,
        body: Any,
        rate_limit: RateLimitHeaders,
    ) -> KentaaAPIError:
        """Convert an error response into our exception hierarchy."""
        detail = _error_detail(body)
        message = f"{descriptor} returned {status}" + (f": {detail}" if detail else "")

        if status == 401:
            return KentaaAuthenticationError(message, status, payload=body, rate_limit=rate_limit)
        elif status == 404:
            return KentaaNotFoundError(message, status, payload=body, rate_limit=rate_limit)
        elif status == 429:
            logger.warning(
                "Kentaa rate limit exceeded (minute={}, hour={})",
                rate_limit.remaining_minute,
                rate_limit.remaining_hour,
            )
            return KentaaRateLimitError(message, status, payload=body, rate_limit=rate_limit)
        else:
            return KentaaAPIError(message, status, payload=body, rate_limit=rate_limit)


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return response.text


def _error_detail(body: Any) -> str:
    """Pull a readable message out of a Kentaa error body."""
    if isinstance(body, dict):
        errors = body.get("errors")
        if isinstance(errors, list) and errors:
            return "; ".join(
                str(error.get("message", error)) if isinstance(error, dict) else str(error)
                for error in errors
            )
        if "message" in body:
            return str(body["message"])
        return ""
    return str(body)[:200] if body else ""
