"""FastAPI server for the Mattermost slash command setup."""

import argparse
import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.mattermost.client import MattermostClient
from src.provisioning.attempts import AttemptRegistry
from src.slash_commands.config import SlashCommandSettings, load_settings
from src.slash_commands.database import create_session_maker, create_tables
from src.web.routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting slash command setup server")
    engine = app.state.engine
    if engine is not None:
        await create_tables(engine)
    yield
    logger.info("Shutting down slash command setup server")
    await app.state.mattermost_client.aclose()
    if engine is not None:
        await engine.dispose()


def create_app(
    settings: Optional[SlashCommandSettings] = None,
    client: Optional[MattermostClient] = None,
    session_maker: Optional[async_sessionmaker[AsyncSession]] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Integration settings (defaults are read from the environment)
        client: Mattermost client; one is built from settings when omitted
        session_maker: Database session factory; one is built from
            settings.database_url when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or SlashCommandSettings()

    app = FastAPI(
        title="Mattermost Slash Commands",
        description="Set up the Mattermost slash commands of a project",
        version="1.0.0",
        lifespan=lifespan,
    )

    engine = None
    if session_maker is None:
        engine, session_maker = create_session_maker(settings.database_url)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_maker = session_maker
    app.state.mattermost_client = client or MattermostClient(
        settings.mattermost_host,
        timeout=settings.request_timeout,
    )
    app.state.attempts = AttemptRegistry()

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "ok",
            "message": "Slash command setup server is running",
            "mattermost_enabled": settings.mattermost_enabled,
        }

    app.include_router(router)
    return app


def main():
    """Run the server directly."""
    import uvicorn

    parser = argparse.ArgumentParser(description="Mattermost slash command setup server")
    parser.add_argument("--config", default="config.yaml", help="Path to YAML config")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    settings = load_settings(args.config)
    app = create_app(settings)
    uvicorn.run(app, host=settings.server_host, port=settings.server_port)


if __name__ == "__main__":
    main()
