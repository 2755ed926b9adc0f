"""Test fixtures for the Kentaa API client."""

from .kentaa_responses import (
    ACTION_RESPONSE,
    ERROR_RESPONSE_NOT_FOUND,
    ERROR_RESPONSE_RATE_LIMITED,
    ERROR_RESPONSE_VALIDATION,
    HEADERS_FRESH,
    HEADERS_HOUR_EXHAUSTED,
    HEADERS_MINUTE_EXHAUSTED,
    SITE_RESPONSE,
    make_action,
    make_action_pages,
    make_page,
    make_rate_limit_headers,
)

__all__ = [
    # Rate limit headers
    "HEADERS_FRESH",
    "HEADERS_HOUR_EXHAUSTED",
    "HEADERS_MINUTE_EXHAUSTED",
    "make_rate_limit_headers",
    # Response bodies
    "ACTION_RESPONSE",
    "ERROR_RESPONSE_NOT_FOUND",
    "ERROR_RESPONSE_RATE_LIMITED",
    "ERROR_RESPONSE_VALIDATION",
    "SITE_RESPONSE",
    "make_action",
    "make_action_pages",
    "make_page",
]
