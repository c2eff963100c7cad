"""Mattermost REST API client used by the slash command setup flow."""

from src.mattermost.client import MattermostClient
from src.mattermost.exceptions import UpstreamError
from src.mattermost.models import RegisteredCommand, Team

__all__ = ["MattermostClient", "UpstreamError", "RegisteredCommand", "Team"]
