"""Mattermost data models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Team:
    """A Mattermost team as returned by the teams API."""

    id: str
    display_name: str


@dataclass(frozen=True)
class RegisteredCommand:
    """A slash command created in a Mattermost team."""

    id: str
    team_id: str
    token: str
