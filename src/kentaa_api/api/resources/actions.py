"""Actions: personal fundraising pages.

See https://developer.kentaa.nl/kentaa-api/#actions
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from kentaa_api.api.pacing.request import RequestDescriptor

from .base import ResourceClient


class Actions(ResourceClient):
    """Client for /actions (optionally nested under a project or team)."""

    name = "actions"
    list_key = "actions"
    item_key = "action"

    async def create(
        self,
        owner_id: int,
        title: str,
        description: str,
        body: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Create an action.

        Args:
            owner_id: User id of the action's owner
            title: Title of the action
            description: Description of the action
            body: Additional fields for the POST body
        """
        payload = dict(body or {})
        payload.update(owner_id=owner_id, title=title, description=description)
        response = await self._api.request(
            RequestDescriptor(method="POST", path=self.location, body=payload)
        )
        return self._unwrap(response)

    async def update(
        self,
        action_id: int | str,
        body: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Update an action with the given fields (PATCH)."""
        response = await self._api.request(
            RequestDescriptor(
                method="PATCH",
                path=self.item_location(action_id),
                body=dict(body or {}),
            )
        )
        return self._unwrap(response)
