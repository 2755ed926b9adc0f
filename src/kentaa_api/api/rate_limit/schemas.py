"""Pydantic schemas for Kentaa API rate limit data.

The Kentaa API allows 100 requests per minute and 500 per hour per API key.
Counters reset on the 0th second of every minute and the 0th minute of every
hour. Every response carries the service's own view of the budget:

- X-RateLimit-Limit-Minute / X-RateLimit-Remaining-Minute
- X-RateLimit-Limit-Hour / X-RateLimit-Remaining-Hour
"""

from collections.abc import Mapping
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, computed_field


class RateLimitWindow(StrEnum):
    """Fixed wall-clock windows with an independent request budget."""

    MINUTE = "minute"
    HOUR = "hour"

    @property
    def period(self) -> timedelta:
        """Length of one window."""
        if self is RateLimitWindow.MINUTE:
            return timedelta(minutes=1)
        return timedelta(hours=1)

    @property
    def remaining_header(self) -> str:
        """Response header holding the remaining count for this window."""
        return f"x-ratelimit-remaining-{self.value}"

    @property
    def limit_header(self) -> str:
        """Response header holding the ceiling for this window."""
        return f"x-ratelimit-limit-{self.value}"


class WindowStatus(StrEnum):
    """Position of a window counter in its Full -> Draining -> Exhausted cycle."""

    FULL = "full"
    DRAINING = "draining"
    EXHAUSTED = "exhausted"


def window_start(window: RateLimitWindow, now: datetime) -> datetime:
    """Start of the window containing ``now``."""
    if window is RateLimitWindow.MINUTE:
        return now.replace(second=0, microsecond=0)
    return now.replace(minute=0, second=0, microsecond=0)


def next_window_boundary(window: RateLimitWindow, now: datetime) -> datetime:
    """First wall-clock boundary strictly after ``now``.

    Example:
        >>> next_window_boundary(RateLimitWindow.MINUTE, datetime(2024, 1, 1, 12, 30, 15))
        datetime.datetime(2024, 1, 1, 12, 31)
    """
    return window_start(window, now) + window.period


class WindowCounter(BaseModel):
    """Remaining request budget for one window.

    Assignments are validated, so ``remaining`` can never go negative.
    """

    model_config = ConfigDict(validate_assignment=True)

    window: RateLimitWindow = Field(description="Window this counter belongs to")
    limit: int = Field(ge=1, description="Value the counter resets to at each boundary")
    remaining: int = Field(ge=0, description="Requests remaining in the current window")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> WindowStatus:
        """Current state of the window."""
        if self.remaining == 0:
            return WindowStatus.EXHAUSTED
        if self.remaining >= self.limit:
            return WindowStatus.FULL
        return WindowStatus.DRAINING

    @computed_field  # type: ignore[prop-decorator]
    @property
    def usage_percent(self) -> float:
        """Percentage of the window's budget consumed (0.0 to 100.0)."""
        used = max(0, self.limit - self.remaining)
        return (used / self.limit) * 100

    def reset(self) -> None:
        """Restore the counter to its ceiling."""
        self.remaining = self.limit

    def consume(self) -> None:
        """Take one request from the budget."""
        self.remaining = self.remaining - 1


def _parse_count(headers: Mapping[str, str], name: str) -> int | None:
    raw = headers.get(name)
    if raw is None:
        return None
    try:
        value = int(str(raw).strip())
    except ValueError:
        return None
    return value if value >= 0 else None


class RateLimitHeaders(BaseModel):
    """Rate limit values reported by the service on a single response.

    Any value may be absent: error responses from proxies, for instance,
    carry no rate limit headers at all.
    """

    remaining_minute: int | None = Field(default=None, ge=0)
    remaining_hour: int | None = Field(default=None, ge=0)
    limit_minute: int | None = Field(default=None, ge=0)
    limit_hour: int | None = Field(default=None, ge=0)

    @classmethod
    def from_response_headers(cls, headers: Mapping[str, str]) -> Self:
        """Parse from HTTP response headers.

        Header names are matched case-insensitively. Malformed or negative
        values are treated as absent.

        Args:
            headers: HTTP response headers

        Returns:
            RateLimitHeaders instance
        """
        lowered = {str(k).lower(): v for k, v in headers.items()}
        return cls(
            remaining_minute=_parse_count(lowered, RateLimitWindow.MINUTE.remaining_header),
            remaining_hour=_parse_count(lowered, RateLimitWindow.HOUR.remaining_header),
            limit_minute=_parse_count(lowered, RateLimitWindow.MINUTE.limit_header),
            limit_hour=_parse_count(lowered, RateLimitWindow.HOUR.limit_header),
        )

    def remaining_by_window(self) -> dict[RateLimitWindow, int]:
        """Reported remaining counts, keyed by window (absent values omitted)."""
        values = {
            RateLimitWindow.MINUTE: self.remaining_minute,
            RateLimitWindow.HOUR: self.remaining_hour,
        }
        return {window: value for window, value in values.items() if value is not None}

    @property
    def is_empty(self) -> bool:
        """True when the response carried no remaining counts."""
        return not self.remaining_by_window()
