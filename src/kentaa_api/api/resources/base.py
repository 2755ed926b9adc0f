"""Base class for Kentaa resource clients.

A resource client only builds request descriptors for one resource family
(actions, projects, ...) and forwards them to the API client, which routes
them through the rate limited scheduler.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from kentaa_api.api.pacing.request import ParamValue, RequestDescriptor


class ApiRequester(Protocol):
    """The two primitives resource clients need."""

    async def request(self, descriptor: RequestDescriptor) -> Any: ...

    async def get_entire_paginated_list(
        self,
        location: str,
        list_key: str,
        params: Mapping[str, ParamValue] | None = None,
    ) -> list[Any]: ...


class ResourceClient:
    """Client for one Kentaa resource family.

    Args:
        api: Object exposing request() and get_entire_paginated_list()
        name: Resource name in the URL, e.g. "donation_forms"
        list_key: Key of the list in list responses (defaults to name)
        item_key: Key of the object in single-item responses
        parent_location: Optional parent, e.g. "projects/12"
    """

    name: str = ""
    list_key: str = ""
    item_key: str = ""

    def __init__(
        self,
        api: ApiRequester,
        name: str | None = None,
        list_key: str | None = None,
        item_key: str | None = None,
        parent_location: str | None = None,
    ) -> None:
        self._api = api
        self.name = name or self.name
        if not self.name:
            raise ValueError("Resource name is required")
        self.list_key = list_key or self.list_key or self.name
        self.item_key = item_key or self.item_key
        self.parent_location = parent_location.strip("/") if parent_location else None

    @property
    def location(self) -> str:
        """API location of this resource, including any parent."""
        if self.parent_location:
            return f"{self.parent_location}/{self.name}"
        return self.name

    def item_location(self, item_id: int | str) -> str:
        return f"{self.location}/{item_id}"

    async def list(self, params: Mapping[str, ParamValue] | None = None) -> list[dict[str, Any]]:
        """Return the entire (paginated) list of this resource.

        Args:
            params: Optional query parameters, e.g. {"created_after": "2024-01-01"}
        """
        return await self._api.get_entire_paginated_list(self.location, self.list_key, params)

    async def get(
        self,
        item_id: int | str,
        params: Mapping[str, ParamValue] | None = None,
    ) -> dict[str, Any]:
        """Return one item by id (or slug).

        The item is unwrapped from its envelope key when the resource has one.
        """
        body = await self._api.request(
            RequestDescriptor(method="GET", path=self.item_location(item_id), params=params)
        )
        return self._unwrap(body)

    def _unwrap(self, body: Any) -> Any:
        if self.item_key and isinstance(body, dict) and self.item_key in body:
            return body[self.item_key]
        return body

    def __repr__(self) -> str:
        return f"{type(self).__name__}(location={self.location!r})"
