"""Tests for RequestDescriptor and PendingRequest."""

import asyncio
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from kentaa_api.api.pacing import PendingRequest, RequestDescriptor, RequestState
from kentaa_api.api.rate_limit import RateLimitHeaders, RateLimitWindow


class TestRequestDescriptor:
    """Tests for descriptor normalization."""

    def test_defaults(self) -> None:
        descriptor = RequestDescriptor(path="actions")

        assert descriptor.method == "GET"
        assert descriptor.params == ()
        assert descriptor.body is None
        assert str(descriptor) == "GET /actions"

    def test_method_is_upper_cased(self) -> None:
        assert RequestDescriptor(method="patch", path="actions/1").method == "PATCH"

    def test_path_is_stripped(self) -> None:
        assert RequestDescriptor(path="/projects/12/actions/").path == "projects/12/actions"

    def test_empty_path_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RequestDescriptor(path="/")

    def test_params_from_mapping_drop_none(self) -> None:
        """None values are not sent."""
        descriptor = RequestDescriptor(path="donations", params={"page": 2, "q": None})

        assert descriptor.params == (("page", 2),)
        assert descriptor.query == {"page": 2}

    def test_is_frozen(self) -> None:
        descriptor = RequestDescriptor(path="actions")

        with pytest.raises(ValidationError):
            descriptor.path = "users"  # type: ignore[misc]

    def test_body_is_detached(self) -> None:
        """Later changes to the caller's dict do not leak into the descriptor."""
        body = {"title": "Run"}
        descriptor = RequestDescriptor(method="POST", path="actions", body=body)
        body["title"] = "Walk"

        assert descriptor.body == {"title": "Run"}

    def test_with_params_overrides_and_appends(self) -> None:
        """Existing keys keep their position, new keys are appended."""
        descriptor = RequestDescriptor(path="actions", params={"page": 3, "sort": "id"})

        updated = descriptor.with_params(page=1, per_page=100)

        assert updated.params == (("page", 1), ("sort", "id"), ("per_page", 100))
        assert descriptor.params == (("page", 3), ("sort", "id"))

    def test_with_params_none_removes(self) -> None:
        descriptor = RequestDescriptor(path="actions", params={"sort": "id"})

        assert descriptor.with_params(sort=None).params == ()


class TestPendingRequest:
    """Tests for the single-resolution handle."""

    @pytest.fixture
    def scheduler(self) -> MagicMock:
        return MagicMock()

    async def test_resolve_once(self, scheduler: MagicMock) -> None:
        """Only the first resolution wins."""
        pending = PendingRequest(
            descriptor=RequestDescriptor(path="actions"),
            future=asyncio.get_running_loop().create_future(),
            scheduler=scheduler,
        )

        assert pending.resolve({"actions": []}) is True
        assert pending.fail(RuntimeError("late")) is False
        assert pending.state == RequestState.COMPLETED
        assert pending.completed_at is not None
        assert await pending.future == {"actions": []}

    async def test_fail_with_state(self, scheduler: MagicMock) -> None:
        pending = PendingRequest(
            descriptor=RequestDescriptor(path="actions"),
            future=asyncio.get_running_loop().create_future(),
            scheduler=scheduler,
        )

        assert pending.fail(TimeoutError("late"), RequestState.EXPIRED) is True
        assert pending.state == RequestState.EXPIRED
        with pytest.raises(TimeoutError):
            await pending.future

    async def test_mark_dequeued_cancels_deadline(self, scheduler: MagicMock) -> None:
        """Leaving the queue disarms the queue deadline."""
        loop = asyncio.get_running_loop()
        pending = PendingRequest(
            descriptor=RequestDescriptor(path="actions"),
            future=loop.create_future(),
            scheduler=scheduler,
        )
        deadline = loop.call_later(10, lambda: None)
        pending.deadline = deadline

        pending.mark_dequeued()

        assert pending.state == RequestState.IN_FLIGHT
        assert pending.dequeued_at is not None
        assert pending.deadline is None
        assert deadline.cancelled()

    async def test_report_forwards_present_windows(self, scheduler: MagicMock) -> None:
        """Only windows with a reported value are forwarded."""
        pending = PendingRequest(
            descriptor=RequestDescriptor(path="actions"),
            future=asyncio.get_running_loop().create_future(),
            scheduler=scheduler,
        )

        pending.report(RateLimitHeaders(remaining_minute=37))

        scheduler.report_remaining.assert_called_once_with(RateLimitWindow.MINUTE, 37)

    async def test_cancel(self, scheduler: MagicMock) -> None:
        pending = PendingRequest(
            descriptor=RequestDescriptor(path="actions"),
            future=asyncio.get_running_loop().create_future(),
            scheduler=scheduler,
        )

        assert pending.cancel() is True
        assert pending.future.cancelled()
        assert pending.state == RequestState.CANCELLED
        assert pending.cancel() is False
