"""Pytest configuration and shared fixtures.

Usage Guide:
- For scheduler tests: use the `scheduler` fixture, or `make_scheduler` with a
  FakeTransport from tests.fakes
- For pagination tests: feed page bodies from tests.fixtures into a FakeTransport
- For transport tests: build an httpx.MockTransport-backed client
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest

from kentaa_api.api.pacing import RateLimitScheduler
from kentaa_api.config import RateLimitConfig, SchedulerConfig
from tests.fakes import FakeClock, FakeTransport, sleep_forever


# -----------------------------------------------------------------------------
# Scheduler Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def rate_limit_config() -> RateLimitConfig:
    return RateLimitConfig(requests_per_minute=100, requests_per_hour=500)


@pytest.fixture
def scheduler_config() -> SchedulerConfig:
    return SchedulerConfig(per_page=100, queue_timeout_seconds=None, shutdown_timeout_seconds=1.0)


@pytest.fixture
async def make_scheduler(
    rate_limit_config: RateLimitConfig,
    scheduler_config: SchedulerConfig,
) -> AsyncIterator[Callable[..., RateLimitScheduler]]:
    """Factory for schedulers whose reset tasks never fire on their own.

    Window boundaries are driven explicitly with reset_window(). Every
    scheduler created is shut down after the test.
    """
    created: list[RateLimitScheduler] = []

    def _make(transport: Any, **kwargs: Any) -> RateLimitScheduler:
        kwargs.setdefault("sleep", sleep_forever)
        scheduler = RateLimitScheduler(
            transport,
            kwargs.pop("config", rate_limit_config),
            kwargs.pop("scheduler_config", scheduler_config),
            **kwargs,
        )
        created.append(scheduler)
        return scheduler

    yield _make

    for scheduler in created:
        await scheduler.shutdown(wait=False)


@pytest.fixture
async def scheduler(
    make_scheduler: Callable[..., RateLimitScheduler],
    fake_transport: FakeTransport,
) -> RateLimitScheduler:
    return make_scheduler(fake_transport)


# -----------------------------------------------------------------------------
# Utility Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
