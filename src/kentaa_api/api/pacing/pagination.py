"""Paginated list assembly.

Kentaa list endpoints return at most 100 items per page together with a
``total_pages`` field. The assembler walks the pages in ascending order, one
request at a time, and concatenates the target lists. Every page request goes
through the scheduler like any other request.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from typing import Any, Protocol

from kentaa_api.api.exceptions import KentaaResponseError
from kentaa_api.config import get_settings
from kentaa_api.logging import LogContext

from .request import ParamValue, RequestDescriptor

logger = logging.getLogger(__name__)


class Requester(Protocol):
    """Anything that can execute a descriptor and return the decoded body."""

    async def request(self, descriptor: RequestDescriptor) -> Any: ...


class PaginatedListAssembler:
    """Fetches every page of a list endpoint as one ordered sequence.

    Usage:
        assembler = PaginatedListAssembler(scheduler)
        actions = await assembler.fetch_all("actions", "actions", {"sort": "created_at"})
    """

    def __init__(self, requester: Requester, per_page: int | None = None) -> None:
        """Initialize the assembler.

        Args:
            requester: Usually the RateLimitScheduler
            per_page: Page size (uses settings if not provided)
        """
        self._requester = requester
        self._per_page = per_page or get_settings().scheduler.per_page

    @property
    def per_page(self) -> int:
        return self._per_page

    async def iter_pages(
        self,
        location: str,
        params: Mapping[str, ParamValue] | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """Yield decoded page bodies in ascending page order.

        Page 1 decides how many pages follow. A missing or zero
        ``total_pages`` means page 1 is the only page.

        Args:
            location: API location, e.g. "actions" or "projects/12/actions"
            params: Extra query parameters ("page" and "per_page" are overridden)
        """
        base = RequestDescriptor(method="GET", path=location, params=params)
        first = base.with_params(per_page=self._per_page, page=1)

        first_page = _require_mapping(await self._requester.request(first), location, 1)
        yield first_page

        total_pages = _total_pages(first_page)
        if total_pages > 1:
            logger.debug("Fetching %d more pages of %s", total_pages - 1, location)
        for page in range(2, total_pages + 1):
            body = await self._requester.request(first.with_params(page=page))
            yield _require_mapping(body, location, page)

    async def iter_items(
        self,
        location: str,
        list_key: str,
        params: Mapping[str, ParamValue] | None = None,
    ) -> AsyncIterator[Any]:
        """Yield the items under ``list_key`` page by page.

        Stops fetching as soon as the caller stops iterating.
        """
        page_number = 0
        async for page in self.iter_pages(location, params):
            page_number += 1
            for item in _extract_list(page, list_key, location, page_number):
                yield item

    async def fetch_all(
        self,
        location: str,
        list_key: str,
        params: Mapping[str, ParamValue] | None = None,
    ) -> list[Any]:
        """Return every item of a paginated list, in page order.

        An error on any page aborts the whole call; no partial list is
        returned.

        Args:
            location: API location, e.g. "actions"
            list_key: Key of the list in each page body, e.g. "donation_forms"
            params: Extra query parameters

        Returns:
            Concatenated items of all pages
        """
        with LogContext(location=location, list_key=list_key):
            items = [item async for item in self.iter_items(location, list_key, params)]
            logger.debug("Assembled %d items from %s", len(items), location)
        return items


def _require_mapping(page: Any, location: str, page_number: int) -> dict[str, Any]:
    if not isinstance(page, Mapping):
        raise KentaaResponseError(f"Page {page_number} of {location} is not an object")
    return dict(page)


def _total_pages(page: Mapping[str, Any]) -> int:
    value = page.get("total_pages")
    if value is None:
        return 1
    try:
        return max(1, int(value))
    except (TypeError, ValueError):
        raise KentaaResponseError(f"Invalid total_pages value: {value!r}") from None


def _extract_list(
    page: Mapping[str, Any],
    list_key: str,
    location: str,
    page_number: int,
) -> list[Any]:
    items = page.get(list_key)
    if items is None:
        if page.get("total_pages") == 0:
            return []
        raise KentaaResponseError(
            f"Page {page_number} of {location} has no '{list_key}' list"
        )
    if not isinstance(items, list):
        raise KentaaResponseError(
            f"Page {page_number} of {location}: '{list_key}' is not a list"
        )
    return items
