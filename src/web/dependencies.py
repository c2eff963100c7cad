"""Request dependencies for the slash command setup API."""

from typing import Annotated, AsyncIterator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.provisioning.attempts import AttemptRegistry
from src.provisioning.orchestrator import ProvisioningOrchestrator
from src.provisioning.resolver import TeamResolver
from src.slash_commands.config import SlashCommandSettings
from src.slash_commands.token_store import TokenStore

mattermost_token = HTTPBearer(description="Mattermost access token of the current user")


def get_settings(request: Request) -> SlashCommandSettings:
    return request.app.state.settings


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Dependency for getting database sessions."""
    async with request.app.state.session_maker() as session:
        yield session


def get_attempts(request: Request) -> AttemptRegistry:
    return request.app.state.attempts


def get_credentials(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(mattermost_token)],
) -> str:
    return credentials.credentials


def get_token_store(
    db: AsyncSession = Depends(get_db),
    settings: SlashCommandSettings = Depends(get_settings),
) -> TokenStore:
    return TokenStore(db, settings.api_base, settings.token_bytes)


def get_orchestrator(
    request: Request,
    token_store: TokenStore = Depends(get_token_store),
    settings: SlashCommandSettings = Depends(get_settings),
) -> ProvisioningOrchestrator:
    """Build the orchestrator for a request.

    The feature flag is read from settings here and passed in, so the
    orchestrator itself never looks at global state.
    """
    return ProvisioningOrchestrator(
        client=request.app.state.mattermost_client,
        resolver=TeamResolver(settings.mattermost_host),
        token_store=token_store,
        enabled=settings.mattermost_enabled,
        public_base=settings.public_base,
    )
