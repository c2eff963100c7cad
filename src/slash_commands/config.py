"""Slash command integration settings."""

import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

INTEGRATION_NAME = "mattermost_slash_commands"


class SlashCommandSettings(BaseSettings):
    """Settings for the Mattermost slash command integration."""

    model_config = SettingsConfigDict(
        env_prefix="SLASH_COMMANDS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Mattermost
    mattermost_enabled: bool = Field(default=True, description="Offer the 'Add to Mattermost' flow")
    mattermost_host: str = Field(default="http://localhost:8065", description="Mattermost server URL")
    request_timeout: float = Field(default=10.0, gt=0, le=120, description="Mattermost request timeout in seconds")

    # URLs exposed to Mattermost
    api_base: str = Field(default="http://localhost:8080/api/v3", description="Base URL of the project API")
    public_base: str = Field(default="http://localhost:8080", description="Public URL used for the command icon")

    # Storage
    database_url: str = Field(default="sqlite+aiosqlite:///./slash_commands.db", description="SQLAlchemy URL")
    token_bytes: int = Field(default=18, ge=16, le=64, description="Random bytes in a generated token")

    # Server
    server_host: str = Field(default="0.0.0.0", description="Server host")
    server_port: int = Field(default=8080, ge=1, le=65535, description="Server port")


def _merge(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_settings(config_path: str = "config.yaml") -> SlashCommandSettings:
    """Load settings from the ``slash_commands`` section of a YAML file.

    A sibling ``*.local.yaml`` file overrides values from the main file.
    Environment variables apply to anything the files leave unset.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        SlashCommandSettings instance
    """
    config: dict[str, Any] = {}
    path = Path(config_path)
    for candidate in (path, path.with_suffix(".local.yaml")):
        if candidate.exists():
            with open(candidate) as f:
                _merge(config, yaml.safe_load(f) or {})
            logger.info("Loaded configuration from %s", candidate)

    section: Optional[dict[str, Any]] = config.get("slash_commands")
    return SlashCommandSettings(**(section or {}))
