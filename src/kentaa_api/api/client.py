"""Async Kentaa API client.

This module wires the HTTP transport, the rate limited scheduler, the
paginated list assembler and the resource clients together.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from kentaa_api.config import Settings, get_settings
from kentaa_api.logging import get_logger

from .exceptions import KentaaAuthenticationError
from .pacing import PaginatedListAssembler, RateLimitScheduler, RequestDescriptor
from .pacing.request import ParamValue
from .rate_limit.schemas import RateLimitWindow, WindowCounter
from .resources import Actions, DonationForms, Donations, Projects, Teams, Users
from .transport import HttpTransport, Transport

logger = get_logger(__name__)


class KentaaClient:
    """Async Kentaa API client with client-side rate limiting.

    Usage:
        async with KentaaClient() as client:
            actions = await client.actions.list()
            action = await client.actions.get(actions[0]["id"])

    Or without context manager:
        client = KentaaClient(api_key="...")
        forms = await client.donation_forms.list()
        await client.close()

    Every call, including each page of a list, passes through the same
    scheduler and therefore shares the 100/minute and 500/hour budget.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        transport: Transport | None = None,
        scheduler: RateLimitScheduler | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Kentaa API key. If not provided, uses KENTAA_API_KEY from settings.
            base_url: API base URL. If not provided, uses KENTAA_BASE_URL from settings.
            transport: Optional transport (an HttpTransport is built otherwise)
            scheduler: Optional preconfigured scheduler (must wrap the same transport)
            settings: Optional settings (uses cached settings if not provided)

        Raises:
            KentaaAuthenticationError: If no API key is available and no transport given.
        """
        self._settings = settings or get_settings()

        if scheduler is None:
            if transport is None:
                key = api_key or self._settings.kentaa_api_key
                if not key:
                    raise KentaaAuthenticationError(
                        "Kentaa API key required. Set KENTAA_API_KEY environment variable."
                    )
                transport = HttpTransport(
                    key,
                    base_url or self._settings.kentaa_base_url,
                    config=self._settings.http,
                )
                logger.debug("Using Kentaa API at {}", transport.base_url)
            scheduler = RateLimitScheduler(
                transport,
                self._settings.rate_limit,
                self._settings.scheduler,
            )

        self._transport = transport
        self._scheduler = scheduler
        self._assembler = PaginatedListAssembler(
            self._scheduler,
            per_page=self._settings.scheduler.per_page,
        )

        # Resource clients
        self.actions = Actions(self)
        self.donation_forms = DonationForms(self)
        self.donations = Donations(self)
        self.projects = Projects(self)
        self.teams = Teams(self)
        self.users = Users(self)

    @property
    def scheduler(self) -> RateLimitScheduler:
        """Access the rate limited scheduler."""
        return self._scheduler

    @property
    def assembler(self) -> PaginatedListAssembler:
        return self._assembler

    async def close(self) -> None:
        """Shut down the scheduler and close the transport."""
        logger.debug("Closing Kentaa client ({})", self._scheduler.get_stats())
        await self._scheduler.shutdown()
        close = getattr(self._transport, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> KentaaClient:
        await self._scheduler.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Request Primitives
    # -------------------------------------------------------------------------
    async def request(self, descriptor: RequestDescriptor) -> Any:
        """Do a request on the Kentaa API.

        Resolves once the response arrives; if the local budget is spent it
        first waits in the queue for the next minute or hour reset.

        Returns:
            Decoded response body
        """
        return await self._scheduler.request(descriptor)

    async def get_entire_paginated_list(
        self,
        location: str,
        list_key: str,
        params: Mapping[str, ParamValue] | None = None,
    ) -> list[Any]:
        """Return the entire paginated list at ``location``.

        Args:
            location: API location, e.g. "actions"
            list_key: Key of the list in each page, e.g. "donation_forms"
            params: Optional query parameters
        """
        return await self._assembler.fetch_all(location, list_key, params)

    async def get_current_site(self) -> dict[str, Any]:
        """Return the site the API key belongs to (GET /sites/current)."""
        body = await self.request(RequestDescriptor(method="GET", path="sites/current"))
        if isinstance(body, dict) and "site" in body:
            return body["site"]
        return body

    # -------------------------------------------------------------------------
    # Rate Limit Info
    # -------------------------------------------------------------------------
    def rate_limit_status(self) -> dict[RateLimitWindow, WindowCounter]:
        """Current local view of both windows (corrected from response headers)."""
        return {window: self._scheduler.counter(window) for window in RateLimitWindow}
