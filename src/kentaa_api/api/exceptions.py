"""Kentaa client exceptions."""

from typing import Any

from .rate_limit.schemas import RateLimitHeaders


class KentaaClientError(Exception):
    """Base exception for Kentaa client errors."""

    pass


class KentaaTransportError(KentaaClientError):
    """Raised when the underlying HTTP call fails.

    Carries whatever rate limit headers the response had (if any response
    was received), so the scheduler can correct its counters.
    """

    def __init__(self, message: str, rate_limit: RateLimitHeaders | None = None) -> None:
        super().__init__(message)
        self.rate_limit = rate_limit or RateLimitHeaders()


class KentaaAPIError(KentaaTransportError):
    """Raised when the API answers with a non-2xx status."""

    def __init__(
        self,
        message: str,
        status_code: int,
        payload: Any = None,
        rate_limit: RateLimitHeaders | None = None,
    ) -> None:
        super().__init__(message, rate_limit=rate_limit)
        self.status_code = status_code
        self.payload = payload


class KentaaAuthenticationError(KentaaAPIError):
    """Raised when authentication fails (401) or no API key is configured."""

    def __init__(
        self,
        message: str,
        status_code: int = 401,
        payload: Any = None,
        rate_limit: RateLimitHeaders | None = None,
    ) -> None:
        super().__init__(message, status_code, payload=payload, rate_limit=rate_limit)


class KentaaNotFoundError(KentaaAPIError):
    """Raised when a resource is not found (404)."""

    pass


class KentaaRateLimitError(KentaaAPIError):
    """Raised when the API rejects a request for exceeding the rate limit (429).

    The request is not re-queued; its headers still correct the counters.
    """

    pass


class KentaaResponseError(KentaaClientError):
    """Raised when a response body does not have the expected shape."""

    pass


class KentaaQueueTimeoutError(KentaaClientError):
    """Raised when a request's queue deadline elapses before it is dequeued."""

    pass


class SchedulerClosedError(KentaaClientError):
    """Raised for requests submitted to, or still queued in, a shut down scheduler."""

    pass
