"""Rate limit windows and header parsing for the Kentaa API."""

from .schemas import (
    RateLimitHeaders,
    RateLimitWindow,
    WindowCounter,
    WindowStatus,
    next_window_boundary,
    window_start,
)

__all__ = [
    "RateLimitHeaders",
    "RateLimitWindow",
    "WindowCounter",
    "WindowStatus",
    "next_window_boundary",
    "window_start",
]
