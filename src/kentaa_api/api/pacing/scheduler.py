"""Rate limited request scheduler.

This module provides a FIFO admission queue that releases requests only
while both the per-minute and the per-hour budget have capacity.

Features:
- Submission never fails for rate limiting; it only delays
- Dequeue on submission, on completion, and at window boundaries
- Counters corrected from the service's X-RateLimit-Remaining-* headers
- Wall-clock anchored minute/hour resets
- Optional queue deadline and a clean shutdown path

All counter and queue mutations happen in synchronous code on the event
loop, so the check-decrement-pop step in try_dequeue_one() is atomic.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from kentaa_api.api.exceptions import (
    KentaaQueueTimeoutError,
    KentaaTransportError,
    SchedulerClosedError,
)
from kentaa_api.api.rate_limit.schemas import (
    RateLimitHeaders,
    RateLimitWindow,
    WindowCounter,
    WindowStatus,
    next_window_boundary,
)
from kentaa_api.config import RateLimitConfig, SchedulerConfig, get_settings

from .request import PendingRequest, RequestDescriptor, RequestState

if TYPE_CHECKING:
    from kentaa_api.api.transport import Transport

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Sleeper = Callable[[float], Awaitable[Any]]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RateLimitScheduler:
    """FIFO request scheduler bounded by per-minute and per-hour budgets.

    Usage:
        scheduler = RateLimitScheduler(transport)
        await scheduler.start()

        # Submit and wait for the decoded response body
        body = await scheduler.request(RequestDescriptor(path="actions/1"))

        # Or keep the handle and await it later
        handle = scheduler.submit(RequestDescriptor(path="actions/2"))
        body = await handle

        await scheduler.shutdown()
    """

    def __init__(
        self,
        transport: Transport,
        config: RateLimitConfig | None = None,
        scheduler_config: SchedulerConfig | None = None,
        *,
        clock: Clock | None = None,
        sleep: Sleeper | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            transport: Executes dequeued requests
            config: Rate limit ceilings (uses settings if not provided)
            scheduler_config: Queue deadline and shutdown settings (uses settings if not provided)
            clock: Returns the current UTC time (injectable for tests)
            sleep: Coroutine function used by the reset tasks (injectable for tests)
        """
        self._transport = transport
        self._config = config or get_settings().rate_limit
        self._scheduler_config = scheduler_config or get_settings().scheduler
        self._clock = clock or _utcnow
        self._sleep = sleep or asyncio.sleep

        self._counters: dict[RateLimitWindow, WindowCounter] = {
            RateLimitWindow.MINUTE: WindowCounter(
                window=RateLimitWindow.MINUTE,
                limit=self._config.requests_per_minute,
                remaining=self._config.requests_per_minute,
            ),
            RateLimitWindow.HOUR: WindowCounter(
                window=RateLimitWindow.HOUR,
                limit=self._config.requests_per_hour,
                remaining=self._config.requests_per_hour,
            ),
        }

        # Admission queue, head is the oldest submission
        self._queue: deque[PendingRequest] = deque()
        self._in_flight: set[PendingRequest] = set()

        # State
        self._loop: asyncio.AbstractEventLoop | None = None
        self._running = False
        self._closed = False
        self._reset_tasks: dict[RateLimitWindow, asyncio.Task[None]] = {}
        self._active_tasks: set[asyncio.Task[None]] = set()  # Prevent task GC

        # Statistics
        self._total_submitted = 0
        self._total_dequeued = 0
        self._total_completed = 0
        self._total_failed = 0
        self._total_expired = 0

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------
    async def start(self) -> None:
        """Start the minute and hour reset tasks.

        Submitting a request starts them too, so calling this is optional.
        """
        self._start_reset_tasks()

    def _start_reset_tasks(self) -> None:
        if self._running or self._closed:
            return

        self._loop = asyncio.get_running_loop()
        self._running = True
        for window in RateLimitWindow:
            self._reset_tasks[window] = self._loop.create_task(
                self._reset_loop(window),
                name=f"kentaa-reset-{window.value}",
            )
        logger.info(
            "Rate limit scheduler started (per_minute=%d, per_hour=%d)",
            self._config.requests_per_minute,
            self._config.requests_per_hour,
        )

    async def shutdown(self, wait: bool = True, timeout: float | None = None) -> None:
        """Stop the scheduler.

        Queued requests fail with SchedulerClosedError. In-flight requests are
        given up to ``timeout`` seconds to finish when ``wait`` is True; any
        still running afterwards are cancelled.

        Args:
            wait: If True, wait for in-flight requests to complete
            timeout: Maximum seconds to wait (defaults to shutdown_timeout_seconds)
        """
        if self._closed:
            return

        self._closed = True
        self._running = False

        reset_tasks = list(self._reset_tasks.values())
        self._reset_tasks.clear()
        for task in reset_tasks:
            task.cancel()
        await asyncio.gather(*reset_tasks, return_exceptions=True)

        queued = list(self._queue)
        self._queue.clear()
        for pending in queued:
            pending.fail(
                SchedulerClosedError(f"Scheduler shut down before {pending.descriptor} was sent"),
                RequestState.CANCELLED,
            )
        if queued:
            logger.info("Dropped %d queued requests on shutdown", len(queued))

        active = set(self._active_tasks)
        if active and wait:
            if timeout is None:
                timeout = self._scheduler_config.shutdown_timeout_seconds
            logger.info("Waiting for %d in-flight requests...", len(active))
            _, active = await asyncio.wait(active, timeout=timeout)

        for task in active:
            task.cancel()
        await asyncio.gather(*active, return_exceptions=True)

        logger.info(
            "Rate limit scheduler stopped (completed=%d, failed=%d, expired=%d)",
            self._total_completed,
            self._total_failed,
            self._total_expired,
        )

    @property
    def is_running(self) -> bool:
        """Whether the reset tasks are running."""
        return self._running

    @property
    def is_closed(self) -> bool:
        """Whether shutdown() has been called."""
        return self._closed

    # -------------------------------------------------------------------------
    # Request Submission
    # -------------------------------------------------------------------------
    def submit(
        self,
        descriptor: RequestDescriptor,
        *,
        timeout: float | None = None,
    ) -> asyncio.Future[Any]:
        """Queue a request and return its completion handle.

        Never rejects because of rate limiting. A dequeue attempt is scheduled
        for the next event loop iteration, so with capacity available the
        request leaves the queue immediately.

        Args:
            descriptor: The call to make
            timeout: Optional queue deadline in seconds (defaults to queue_timeout_seconds)

        Returns:
            Future resolved with the decoded response body, or with the error

        Raises:
            SchedulerClosedError: If the scheduler has been shut down
        """
        if self._closed:
            raise SchedulerClosedError("Cannot submit to a scheduler that has been shut down")

        self._start_reset_tasks()
        loop = self._loop or asyncio.get_running_loop()
        self._loop = loop

        pending = PendingRequest(
            descriptor=descriptor,
            future=loop.create_future(),
            scheduler=self,
        )
        pending.future.add_done_callback(lambda _: self._forget_if_queued(pending))

        deadline = timeout if timeout is not None else self._scheduler_config.queue_timeout_seconds
        if deadline is not None:
            pending.deadline = loop.call_later(deadline, self._expire, pending, deadline)

        self._queue.append(pending)
        self._total_submitted += 1

        logger.debug(
            "Queued request %s %s (queue_size=%d)",
            pending.short_id,
            descriptor,
            len(self._queue),
        )

        loop.call_soon(self.try_dequeue_one)
        return pending.future

    async def request(
        self,
        descriptor: RequestDescriptor,
        *,
        timeout: float | None = None,
    ) -> Any:
        """Submit a request and wait for its result.

        Raises:
            KentaaTransportError: Any failure of the underlying call
            KentaaQueueTimeoutError: If the queue deadline elapsed
            SchedulerClosedError: If the scheduler was shut down
        """
        return await self.submit(descriptor, timeout=timeout)

    def _forget_if_queued(self, pending: PendingRequest) -> None:
        """Drop a request whose handle was cancelled by the caller while queued."""
        if pending.state is not RequestState.QUEUED:
            return
        try:
            self._queue.remove(pending)
        except ValueError:
            return
        pending.state = RequestState.CANCELLED
        logger.debug("Request %s cancelled while queued", pending.short_id)

    def _expire(self, pending: PendingRequest, deadline: float) -> None:
        if pending.state is not RequestState.QUEUED:
            return
        try:
            self._queue.remove(pending)
        except ValueError:
            return
        if pending.fail(
            KentaaQueueTimeoutError(
                f"{pending.descriptor} was not dequeued within {deadline:.1f} seconds"
            ),
            RequestState.EXPIRED,
        ):
            self._total_expired += 1
            logger.warning("Request %s expired in queue", pending.short_id)

    # -------------------------------------------------------------------------
    # Dequeue
    # -------------------------------------------------------------------------
    def try_dequeue_one(self) -> bool:
        """Release the head of the queue if both windows have capacity.

        Decrements both counters, hands the request to the transport and
        schedules one more attempt, so capacity that frees up drains the queue
        as a wave. Does nothing when the queue is empty or a counter is 0.

        Returns:
            True if a request was dequeued
        """
        if self._closed or not self._queue:
            return False
        if any(counter.remaining <= 0 for counter in self._counters.values()):
            return False

        # Skip handles cancelled since the last loop iteration
        while self._queue and self._queue[0].is_resolved:
            self._queue.popleft().state = RequestState.CANCELLED
        if not self._queue:
            return False

        for counter in self._counters.values():
            counter.consume()

        pending = self._queue.popleft()
        pending.mark_dequeued()
        self._in_flight.add(pending)
        self._total_dequeued += 1

        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self._execute(pending))
        self._active_tasks.add(task)
        task.add_done_callback(self._active_tasks.discard)

        logger.debug(
            "Dequeued request %s %s (minute=%d, hour=%d, queue_size=%d)",
            pending.short_id,
            pending.descriptor,
            self.remaining(RateLimitWindow.MINUTE),
            self.remaining(RateLimitWindow.HOUR),
            len(self._queue),
        )

        if self._queue:
            loop.call_soon(self.try_dequeue_one)
        return True

    async def _execute(self, pending: PendingRequest) -> None:
        """Run one dequeued request and resolve its handle."""
        try:
            response = await self._transport.execute(pending.descriptor)
        except asyncio.CancelledError:
            pending.cancel()
            raise
        except Exception as e:
            if isinstance(e, KentaaTransportError):
                self._report(pending, e.rate_limit)
            if pending.fail(e):
                self._total_failed += 1
            logger.debug("Request %s failed: %s", pending.short_id, e)
        else:
            self._report(pending, response.rate_limit)
            if pending.resolve(response.body):
                self._total_completed += 1
            logger.debug("Request %s completed (status=%d)", pending.short_id, response.status_code)
        finally:
            self._in_flight.discard(pending)

        self.try_dequeue_one()

    # -------------------------------------------------------------------------
    # Counters
    # -------------------------------------------------------------------------
    def _report(self, pending: PendingRequest, rate_limit: RateLimitHeaders) -> None:
        if self._config.track_from_headers:
            pending.report(rate_limit)

    def report_remaining(self, window: RateLimitWindow, value: int) -> None:
        """Overwrite a counter with the service's authoritative remaining count.

        Args:
            window: Which counter to correct
            value: Remaining count reported by the service (negative clamps to 0)
        """
        counter = self._counters[window]
        previous = counter.remaining
        counter.remaining = max(0, value)

        if counter.remaining != previous:
            logger.debug(
                "Corrected %s counter from %d to %d", window.value, previous, counter.remaining
            )
        if counter.remaining > previous:
            self._schedule_dequeue()

    def reset_window(self, window: RateLimitWindow) -> None:
        """Reset a counter to its ceiling and attempt a dequeue.

        Called by the reset task at each wall-clock boundary.
        """
        self._counters[window].reset()
        logger.debug(
            "Reset %s counter to %d (queue_size=%d)",
            window.value,
            self._counters[window].limit,
            len(self._queue),
        )
        self.try_dequeue_one()

    def _schedule_dequeue(self) -> None:
        if self._closed or not self._queue or self._loop is None:
            return
        self._loop.call_soon(self.try_dequeue_one)

    async def _reset_loop(self, window: RateLimitWindow) -> None:
        """Reset ``window`` at every wall-clock boundary, forever."""
        while True:
            boundary = next_window_boundary(window, self._clock())
            await self._sleep_until(boundary)
            self.reset_window(window)

    async def _sleep_until(self, moment: datetime) -> None:
        # Loop timers can fire slightly early relative to the wall clock
        delay = (moment - self._clock()).total_seconds()
        while delay > 0:
            await self._sleep(delay)
            delay = (moment - self._clock()).total_seconds()

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------
    def remaining(self, window: RateLimitWindow) -> int:
        """Requests remaining in the current window."""
        return self._counters[window].remaining

    def counter(self, window: RateLimitWindow) -> WindowCounter:
        """Copy of the counter for a window."""
        return self._counters[window].model_copy()

    def status(self, window: RateLimitWindow) -> WindowStatus:
        """Full / Draining / Exhausted state of a window."""
        return self._counters[window].status

    @property
    def queue_size(self) -> int:
        """Number of requests waiting for capacity."""
        return len(self._queue)

    @property
    def in_flight(self) -> int:
        """Number of dequeued requests whose call has not completed."""
        return len(self._in_flight)

    @property
    def is_idle(self) -> bool:
        """True if nothing is queued or in flight."""
        return not self._queue and not self._in_flight

    def get_stats(self) -> dict[str, int | bool | str]:
        """Get scheduler statistics.

        Returns:
            Dict with counters, queue size and totals
        """
        minute = self._counters[RateLimitWindow.MINUTE]
        hour = self._counters[RateLimitWindow.HOUR]
        return {
            "remaining_per_minute": minute.remaining,
            "remaining_per_hour": hour.remaining,
            "minute_status": minute.status.value,
            "hour_status": hour.status.value,
            "queue_size": len(self._queue),
            "in_flight": len(self._in_flight),
            "is_running": self._running,
            "total_submitted": self._total_submitted,
            "total_dequeued": self._total_dequeued,
            "total_completed": self._total_completed,
            "total_failed": self._total_failed,
            "total_expired": self._total_expired,
        }
