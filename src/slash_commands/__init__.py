"""Mattermost slash command integration settings and storage."""

from src.slash_commands.command import SlashCommand
from src.slash_commands.config import INTEGRATION_NAME, SlashCommandSettings, load_settings
from src.slash_commands.models import IntegrationConfig
from src.slash_commands.token_store import TokenStore

__all__ = [
    "INTEGRATION_NAME",
    "IntegrationConfig",
    "SlashCommand",
    "SlashCommandSettings",
    "TokenStore",
    "load_settings",
]
