"""Request admission control for the Kentaa API.

Components:
- RequestDescriptor / PendingRequest: what is queued
- RateLimitScheduler: FIFO queue bounded by per-minute and per-hour budgets
- PaginatedListAssembler: sequential page fetching on top of the scheduler
"""

from .pagination import PaginatedListAssembler, Requester
from .request import PendingRequest, RequestDescriptor, RequestState
from .scheduler import RateLimitScheduler

__all__ = [
    # Requests
    "PendingRequest",
    "RequestDescriptor",
    "RequestState",
    # Scheduling
    "RateLimitScheduler",
    # Pagination
    "PaginatedListAssembler",
    "Requester",
]
