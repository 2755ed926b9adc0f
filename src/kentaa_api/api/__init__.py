"""Kentaa API client module.

This module provides:
- KentaaClient: Async Kentaa API client with client-side rate limiting
- Request scheduling: RateLimitScheduler, RequestDescriptor, PaginatedListAssembler
- Rate limit windows: RateLimitWindow, WindowCounter, RateLimitHeaders
- Transport: HttpTransport, TransportResponse
- Resource clients: Actions, DonationForms, Donations, Projects, Teams, Users
"""

from .client import KentaaClient
from .exceptions import (
    KentaaAPIError,
    KentaaAuthenticationError,
    KentaaClientError,
    KentaaNotFoundError,
    KentaaQueueTimeoutError,
    KentaaRateLimitError,
    KentaaResponseError,
    KentaaTransportError,
    SchedulerClosedError,
)
from .pacing import (
    PaginatedListAssembler,
    PendingRequest,
    RateLimitScheduler,
    RequestDescriptor,
    RequestState,
)
from .rate_limit import (
    RateLimitHeaders,
    RateLimitWindow,
    WindowCounter,
    WindowStatus,
)
from .resources import (
    RESOURCES,
    Actions,
    DonationForms,
    Donations,
    Projects,
    ResourceClient,
    Teams,
    Users,
)
from .transport import HttpTransport, Transport, TransportResponse

__all__ = [
    # Client
    "KentaaClient",
    # Exceptions
    "KentaaAPIError",
    "KentaaAuthenticationError",
    "KentaaClientError",
    "KentaaNotFoundError",
    "KentaaQueueTimeoutError",
    "KentaaRateLimitError",
    "KentaaResponseError",
    "KentaaTransportError",
    "SchedulerClosedError",
    # Scheduling
    "PaginatedListAssembler",
    "PendingRequest",
    "RateLimitScheduler",
    "RequestDescriptor",
    "RequestState",
    # Rate limits
    "RateLimitHeaders",
    "RateLimitWindow",
    "WindowCounter",
    "WindowStatus",
    # Transport
    "HttpTransport",
    "Transport",
    "TransportResponse",
    # Resources
    "RESOURCES",
    "Actions",
    "DonationForms",
    "Donations",
    "Projects",
    "ResourceClient",
    "Teams",
    "Users",
]
