"""Test doubles for the scheduler's collaborators.

Usage:
    from tests.fakes import FakeTransport, run_loop
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from kentaa_api.api.pacing import RequestDescriptor
from kentaa_api.api.rate_limit import RateLimitHeaders
from kentaa_api.api.transport import TransportResponse

# Wall-clock reference for reset tests: 30 seconds into a minute
NOON_30S = datetime(2024, 1, 15, 12, 0, 30, tzinfo=UTC)

Handler = Callable[[RequestDescriptor], "TransportResponse | BaseException"]


def ok(body: object = None, **rate_limit: int) -> TransportResponse:
    """Build a successful TransportResponse with optional remaining counts."""
    return TransportResponse(
        status_code=200,
        body={} if body is None else body,
        rate_limit=RateLimitHeaders(**rate_limit),
    )


class FakeTransport:
    """In-memory transport recording every executed descriptor.

    ``calls`` is in execution order, i.e. dequeue order. Setting ``gate`` to
    an unset asyncio.Event holds every call in flight until it is set.
    """

    def __init__(self, handler: Handler | None = None) -> None:
        self.calls: list[RequestDescriptor] = []
        self.gate: asyncio.Event | None = None
        self._handler = handler or (lambda _: ok())

    async def execute(self, descriptor: RequestDescriptor) -> TransportResponse:
        self.calls.append(descriptor)
        if self.gate is not None:
            await self.gate.wait()
        result = self._handler(descriptor)
        if isinstance(result, BaseException):
            raise result
        return result

    def hold(self) -> asyncio.Event:
        """Keep calls in flight until the returned event is set."""
        self.gate = asyncio.Event()
        return self.gate


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = NOON_30S) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


async def sleep_forever(_: float) -> None:
    """Sleep replacement that never returns (keeps reset tasks parked)."""
    await asyncio.Event().wait()


async def run_loop(iterations: int = 300) -> None:
    """Let the event loop run ``iterations`` times.

    Dequeue waves advance one request per loop iteration.
    """
    for _ in range(iterations):
        await asyncio.sleep(0)
