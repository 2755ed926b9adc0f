"""Read-only Kentaa resource families."""

from __future__ import annotations

from .actions import Actions
from .base import ResourceClient


class DonationForms(ResourceClient):
    name = "donation_forms"
    item_key = "donation_form"


class Donations(ResourceClient):
    name = "donations"
    item_key = "donation"


class Users(ResourceClient):
    name = "users"
    item_key = "user"


class Projects(ResourceClient):
    name = "projects"
    item_key = "project"

    def actions(self, project_id: int | str) -> Actions:
        """Actions belonging to one project."""
        return Actions(self._api, parent_location=self.item_location(project_id))


class Teams(ResourceClient):
    name = "teams"
    item_key = "team"

    def actions(self, team_id: int | str) -> Actions:
        """Actions of the members of one team."""
        return Actions(self._api, parent_location=self.item_location(team_id))
