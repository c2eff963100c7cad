"""Verification token storage and trigger URL derivation."""

import logging
import secrets
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.slash_commands.config import INTEGRATION_NAME
from src.slash_commands.exceptions import ValidationError
from src.slash_commands.models import IntegrationConfig

logger = logging.getLogger(__name__)


def generate_token(nbytes: int = 18) -> str:
    """Generate a secure random verification token.

    Args:
        nbytes: Number of random bytes

    Returns:
        URL-safe token string
    """
    return secrets.token_urlsafe(nbytes)


class TokenStore:
    """Per-project storage for the slash command token."""

    def __init__(self, db: AsyncSession, api_base: str, token_bytes: int = 18):
        """Initialize the token store.

        Args:
            db: SQLAlchemy async session
            api_base: Base URL of the project API
            token_bytes: Random bytes used for generated tokens
        """
        self.db = db
        self.api_base = api_base.rstrip("/")
        self.token_bytes = token_bytes

    async def get_config(self, project_id: int) -> IntegrationConfig:
        """Return the project's configuration, creating it if absent."""
        config = await self.db.get(IntegrationConfig, project_id)
        if config is None:
            config = IntegrationConfig(project_id=project_id, token="")
            self.db.add(config)
            await self.db.commit()
            await self.db.refresh(config)
            logger.info("Created slash command configuration for project %s", project_id)
        return config

    async def get_or_create_token(self, project_id: int) -> str:
        """Return the stored token, generating and saving one if empty."""
        config = await self.get_config(project_id)
        if not config.token:
            config.token = generate_token(self.token_bytes)
            await self.db.commit()
            logger.info("Generated slash command token for project %s", project_id)
        return config.token

    async def set_token(self, project_id: int, token: str) -> None:
        """Overwrite the project's token.

        Raises:
            ValidationError: If the token is empty
        """
        if not token:
            raise ValidationError("Token can't be blank")
        config = await self.get_config(project_id)
        config.token = token
        await self.db.commit()
        logger.info("Saved slash command token for project %s", project_id)

    async def mark_registered(self, project_id: int, team_id: str, token: Optional[str] = None) -> IntegrationConfig:
        """Activate the integration after the command was created in Mattermost."""
        config = await self.get_config(project_id)
        config.active = True
        config.team_id = team_id
        if token:
            config.token = token
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        logger.info("Activated slash commands for project %s in team %s", project_id, team_id)
        return config

    def trigger_url(self, project_id: int) -> str:
        """Return the URL Mattermost calls when the command is used."""
        return f"{self.api_base}/projects/{project_id}/services/{INTEGRATION_NAME}/trigger"
