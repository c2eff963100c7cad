"""Pytest configuration for the slash command setup tests."""

import json

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.mattermost.client import MattermostClient
from src.slash_commands.config import SlashCommandSettings
from src.slash_commands.database import Base

MATTERMOST_HOST = "http://mattermost.test"
API_BASE = "http://gitlab.test/api/v3"
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def create_teams(count: int = 0) -> list[dict]:
    """Build a Mattermost teams payload with ``count`` teams."""
    return [{"id": str(i), "display_name": f"Team {i}", "name": f"team-{i}"} for i in range(1, count + 1)]


class FakeMattermost:
    """Stand-in for the Mattermost API, served through httpx.MockTransport."""

    def __init__(self):
        self.teams: list = []
        self.teams_response = None
        self.command_response = None
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "GET" and request.url.path == "/api/v4/users/me/teams":
            if self.teams_response is not None:
                return self.teams_response
            return httpx.Response(200, json=self.teams)
        if request.method == "POST" and request.url.path == "/api/v4/commands":
            if self.command_response is not None:
                return self.command_response
            body = json.loads(request.content)
            return httpx.Response(
                201,
                json={"id": "cmd-1", "team_id": body["team_id"], "trigger": body["trigger"], "token": "mm-generated-token"},
            )
        return httpx.Response(404, json={"message": "Not found", "status_code": 404})

    def stub_teams(self, count: int = 0) -> list[dict]:
        self.teams = create_teams(count)
        return self.teams

    def stub_error(self, message: str, status_code: int = 500) -> None:
        self.teams_response = httpx.Response(status_code, json={"message": message, "status_code": status_code})

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]


@pytest.fixture
def mattermost():
    """A fake Mattermost server."""
    return FakeMattermost()


@pytest_asyncio.fixture
async def mattermost_client(mattermost):
    """A Mattermost client wired to the fake server."""
    client = MattermostClient(MATTERMOST_HOST, transport=httpx.MockTransport(mattermost.handler))
    yield client
    await client.aclose()


@pytest.fixture
def settings():
    """Settings for tests, independent of the environment."""
    return SlashCommandSettings(
        _env_file=None,
        mattermost_enabled=True,
        mattermost_host=MATTERMOST_HOST,
        api_base=API_BASE,
        public_base="http://gitlab.test",
        database_url=TEST_DATABASE_URL,
    )


@pytest_asyncio.fixture
async def session_maker():
    """Session factory for a fresh in-memory database."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_maker):
    """A database session."""
    async with session_maker() as session:
        yield session
