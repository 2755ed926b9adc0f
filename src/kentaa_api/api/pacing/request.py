"""Request descriptors and queued request handles.

A RequestDescriptor is the immutable description of one API call. A
PendingRequest wraps it while it travels through the scheduler: queued,
dequeued exactly once, then resolved exactly once.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import IntEnum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kentaa_api.api.rate_limit.schemas import RateLimitHeaders

if TYPE_CHECKING:
    from .scheduler import RateLimitScheduler

ParamValue = Any


class RequestDescriptor(BaseModel):
    """Immutable description of a single Kentaa API call.

    Usage:
        descriptor = RequestDescriptor(method="GET", path="actions", params={"page": 2})
        descriptor.query  # {"page": 2}
    """

    model_config = ConfigDict(frozen=True)

    method: str = Field(default="GET", description="HTTP method (upper-cased)")
    path: str = Field(description="Location relative to the API base URL")
    params: tuple[tuple[str, ParamValue], ...] = Field(
        default=(), description="Query parameters in insertion order"
    )
    body: dict[str, Any] | None = Field(default=None, description="JSON request body")

    @field_validator("method", mode="before")
    @classmethod
    def _normalize_method(cls, value: str) -> str:
        return str(value).strip().upper()

    @field_validator("path", mode="before")
    @classmethod
    def _normalize_path(cls, value: str) -> str:
        path = str(value).strip("/")
        if not path:
            raise ValueError("path must not be empty")
        return path

    @field_validator("params", mode="before")
    @classmethod
    def _normalize_params(cls, value: Any) -> tuple[tuple[str, Any], ...]:
        if value is None:
            return ()
        items = value.items() if isinstance(value, Mapping) else value
        return tuple((str(key), val) for key, val in items if val is not None)

    @field_validator("body", mode="before")
    @classmethod
    def _copy_body(cls, value: Any) -> dict[str, Any] | None:
        # Detach from the caller's mapping
        return dict(value) if value is not None else None

    @property
    def query(self) -> dict[str, ParamValue]:
        """Query parameters as a dict (later duplicates win)."""
        return dict(self.params)

    def with_params(self, **overrides: ParamValue | None) -> RequestDescriptor:
        """Return a copy with query parameters replaced or appended.

        Existing keys keep their position; new keys are appended in order.
        A None value removes the parameter.
        """
        merged: dict[str, Any] = dict(self.params)
        merged.update(overrides)
        return type(self)(method=self.method, path=self.path, params=merged, body=self.body)

    def __str__(self) -> str:
        return f"{self.method} /{self.path}"


class RequestState(IntEnum):
    """State of a request travelling through the scheduler."""

    QUEUED = 1
    IN_FLIGHT = 2
    COMPLETED = 3
    FAILED = 4
    EXPIRED = 5
    CANCELLED = 6


@dataclass(eq=False)
class PendingRequest:
    """A submitted request and its single-resolution completion handle.

    The back-reference to the scheduler is how the request reports the
    remaining counts the service returned once its call completes.
    """

    descriptor: RequestDescriptor
    future: asyncio.Future[Any] = field(repr=False)
    scheduler: RateLimitScheduler = field(repr=False)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    state: RequestState = RequestState.QUEUED
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    dequeued_at: datetime | None = None
    completed_at: datetime | None = None
    deadline: asyncio.TimerHandle | None = field(default=None, repr=False)

    @property
    def short_id(self) -> str:
        return self.id[:8]

    @property
    def is_resolved(self) -> bool:
        """Whether the completion handle has been resolved (or cancelled)."""
        return self.future.done()

    def mark_dequeued(self) -> None:
        """Record that the request left the queue and is being executed."""
        self.state = RequestState.IN_FLIGHT
        self.dequeued_at = datetime.now(UTC)
        self._clear_deadline()

    def report(self, rate_limit: RateLimitHeaders) -> None:
        """Report the service's remaining counts back to the scheduler."""
        for window, value in rate_limit.remaining_by_window().items():
            self.scheduler.report_remaining(window, value)

    def resolve(self, result: Any) -> bool:
        """Resolve the handle with a result.

        Returns:
            True if this call resolved the handle, False if it was already done
        """
        if self.future.done():
            return False
        self.future.set_result(result)
        self._finish(RequestState.COMPLETED)
        return True

    def fail(self, error: BaseException, state: RequestState = RequestState.FAILED) -> bool:
        """Resolve the handle with an error.

        Returns:
            True if this call resolved the handle, False if it was already done
        """
        if self.future.done():
            return False
        self.future.set_exception(error)
        self._finish(state)
        return True

    def cancel(self) -> bool:
        """Cancel the handle (used when an in-flight call is torn down)."""
        if self.future.done():
            return False
        self.future.cancel()
        self._finish(RequestState.CANCELLED)
        return True

    def _finish(self, state: RequestState) -> None:
        self.state = state
        self.completed_at = datetime.now(UTC)
        self._clear_deadline()

    def _clear_deadline(self) -> None:
        if self.deadline is not None:
            self.deadline.cancel()
            self.deadline = None
