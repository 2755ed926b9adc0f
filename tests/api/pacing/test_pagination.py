"""Tests for PaginatedListAssembler."""

from typing import Any

import pytest
from loguru import logger

from kentaa_api.api.exceptions import KentaaNotFoundError, KentaaResponseError
from kentaa_api.api.pacing import PaginatedListAssembler, RequestDescriptor
from kentaa_api.api.rate_limit import RateLimitWindow
from kentaa_api.logging import reset_logging, setup_logging
from tests.fakes import FakeTransport, ok
from tests.fixtures import make_action_pages, make_page


class PageRequester:
    """Serves pre-built pages by their 'page' query parameter."""

    def __init__(self, pages: list[Any], fail_on_page: int | None = None) -> None:
        self.pages = pages
        self.fail_on_page = fail_on_page
        self.requests: list[RequestDescriptor] = []

    async def request(self, descriptor: RequestDescriptor) -> Any:
        self.requests.append(descriptor)
        page = descriptor.query["page"]
        if page == self.fail_on_page:
            raise KentaaNotFoundError(f"{descriptor} returned 404", 404)
        return self.pages[page - 1]


class TestFetchAll:
    """Tests for fetching complete lists."""

    async def test_concatenates_pages_in_order(self) -> None:
        """3 pages of 10 give 30 items in page order."""
        requester = PageRequester(make_action_pages(3, per_page=10))
        assembler = PaginatedListAssembler(requester, per_page=10)

        actions = await assembler.fetch_all("actions", "actions")

        assert [action["id"] for action in actions] == list(range(30))
        assert [r.query["page"] for r in requester.requests] == [1, 2, 3]

    async def test_single_page_issues_one_request(self) -> None:
        requester = PageRequester(make_action_pages(1, per_page=5))
        assembler = PaginatedListAssembler(requester, per_page=100)

        actions = await assembler.fetch_all("actions", "actions")

        assert len(actions) == 5
        assert len(requester.requests) == 1

    async def test_page_and_per_page_forced(self) -> None:
        """Caller params are kept, page and per_page are overridden."""
        requester = PageRequester(make_action_pages(2, per_page=10))
        assembler = PaginatedListAssembler(requester, per_page=100)

        await assembler.fetch_all(
            "actions", "actions", {"page": 9, "per_page": 5, "sort": "created_at"}
        )

        first, second = requester.requests
        assert first.method == "GET"
        assert first.path == "actions"
        assert first.query == {"page": 1, "per_page": 100, "sort": "created_at"}
        assert second.query == {"page": 2, "per_page": 100, "sort": "created_at"}

    async def test_missing_total_pages_means_single_page(self) -> None:
        requester = PageRequester([make_page("donations", [{"id": 1}], total_pages=None)])
        assembler = PaginatedListAssembler(requester, per_page=100)

        donations = await assembler.fetch_all("donations", "donations")

        assert donations == [{"id": 1}]
        assert len(requester.requests) == 1

    async def test_zero_total_pages_returns_page_one_list(self) -> None:
        requester = PageRequester([make_page("donations", [], total_pages=0)])
        assembler = PaginatedListAssembler(requester, per_page=100)

        assert await assembler.fetch_all("donations", "donations") == []
        assert len(requester.requests) == 1

    async def test_zero_total_pages_without_list(self) -> None:
        """An empty result may omit the list entirely."""
        requester = PageRequester([{"total_pages": 0}])
        assembler = PaginatedListAssembler(requester, per_page=100)

        assert await assembler.fetch_all("donations", "donations") == []

    async def test_missing_list_key_raises(self) -> None:
        requester = PageRequester([make_page("actions", [{"id": 1}])])
        assembler = PaginatedListAssembler(requester, per_page=100)

        with pytest.raises(KentaaResponseError, match="no 'donations' list"):
            await assembler.fetch_all("actions", "donations")

    async def test_non_list_value_raises(self) -> None:
        requester = PageRequester([{"total_pages": 1, "actions": {"id": 1}}])
        assembler = PaginatedListAssembler(requester, per_page=100)

        with pytest.raises(KentaaResponseError, match="is not a list"):
            await assembler.fetch_all("actions", "actions")

    async def test_invalid_total_pages_raises(self) -> None:
        requester = PageRequester([{"total_pages": "many", "actions": []}])
        assembler = PaginatedListAssembler(requester, per_page=100)

        with pytest.raises(KentaaResponseError, match="Invalid total_pages"):
            await assembler.fetch_all("actions", "actions")

    @pytest.mark.parametrize("body", ["<html>maintenance</html>", [1, 2]])
    async def test_non_object_page_raises(self, make_scheduler, body: Any) -> None:
        """A 2xx body that is not a JSON object is a malformed page."""
        scheduler = make_scheduler(FakeTransport(lambda d: ok(body)))
        assembler = PaginatedListAssembler(scheduler, per_page=100)

        with pytest.raises(KentaaResponseError, match="Page 1 of actions is not an object"):
            await assembler.fetch_all("actions", "actions")

    async def test_non_object_later_page_raises(self) -> None:
        pages: list[Any] = [*make_action_pages(2)[:1], "Bad Gateway"]
        requester = PageRequester(pages)
        assembler = PaginatedListAssembler(requester, per_page=10)

        with pytest.raises(KentaaResponseError, match="Page 2 of actions is not an object"):
            await assembler.fetch_all("actions", "actions")

    async def test_error_on_later_page_aborts(self) -> None:
        """No partial list is returned and later pages are not requested."""
        requester = PageRequester(make_action_pages(3), fail_on_page=2)
        assembler = PaginatedListAssembler(requester, per_page=10)

        with pytest.raises(KentaaNotFoundError):
            await assembler.fetch_all("actions", "actions")

        assert [r.query["page"] for r in requester.requests] == [1, 2]


class TestIteration:
    """Tests for lazy page and item iteration."""

    async def test_iter_pages_yields_bodies(self) -> None:
        pages = make_action_pages(2)
        assembler = PaginatedListAssembler(PageRequester(pages), per_page=10)

        seen = [page async for page in assembler.iter_pages("actions")]

        assert seen == pages

    async def test_iter_items_stops_early(self) -> None:
        """Breaking out of the iteration stops further page requests."""
        requester = PageRequester(make_action_pages(3))
        assembler = PaginatedListAssembler(requester, per_page=10)

        async for action in assembler.iter_items("actions", "actions"):
            if action["id"] == 3:
                break

        assert len(requester.requests) == 1


class TestThroughScheduler:
    """Pages go through the rate limited scheduler like any other request."""

    async def test_each_page_consumes_budget(self, make_scheduler) -> None:
        pages = make_action_pages(3)
        transport = FakeTransport(lambda d: ok(pages[d.query["page"] - 1]))
        scheduler = make_scheduler(transport)
        assembler = PaginatedListAssembler(scheduler, per_page=10)

        actions = await assembler.fetch_all("projects/12/actions", "actions")

        assert len(actions) == 30
        assert [call.path for call in transport.calls] == ["projects/12/actions"] * 3
        assert scheduler.remaining(RateLimitWindow.MINUTE) == 97
        assert scheduler.remaining(RateLimitWindow.HOUR) == 497


class TestLogContext:
    """Log records emitted while assembling carry the list location."""

    async def test_assembly_logs_bound_to_location(self) -> None:
        messages: list[str] = []
        setup_logging(level="DEBUG")
        handler_id = logger.add(
            lambda msg: messages.append(str(msg)),
            level="DEBUG",
            format="{extra} | {message}",
        )
        try:
            assembler = PaginatedListAssembler(PageRequester(make_action_pages(2)), per_page=10)
            await assembler.fetch_all("projects/12/actions", "actions")
        finally:
            logger.remove(handler_id)
            reset_logging()

        assembled = [msg for msg in messages if "Assembled 20 items" in msg]
        assert assembled
        assert "'location': 'projects/12/actions'" in assembled[0]
        assert "'list_key': 'actions'" in assembled[0]
