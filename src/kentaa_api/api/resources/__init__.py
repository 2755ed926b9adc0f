"""Resource clients for the Kentaa API."""

from .actions import Actions
from .base import ApiRequester, ResourceClient
from .catalog import DonationForms, Donations, Projects, Teams, Users

RESOURCES: dict[str, type[ResourceClient]] = {
    cls.name: cls for cls in (Actions, DonationForms, Donations, Projects, Teams, Users)
}

__all__ = [
    "RESOURCES",
    "Actions",
    "ApiRequester",
    "DonationForms",
    "Donations",
    "Projects",
    "ResourceClient",
    "Teams",
    "Users",
]
