"""Unit tests for the provisioning flow."""

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from src.mattermost.models import Team
from src.provisioning.orchestrator import (
    Failed,
    ProvisioningAttempt,
    ProvisioningOrchestrator,
    ProvisioningState,
    Registered,
)
from src.provisioning.resolver import MultipleTeams, NoTeams, SingleTeam, TeamResolver
from src.slash_commands.exceptions import IntegrationDisabledError, InvalidStateError, ValidationError
from src.slash_commands.token_store import TokenStore


@pytest.fixture
def token_store(db):
    return TokenStore(db, "http://gitlab.test/api/v3")


@pytest.fixture
def orchestrator(mattermost_client, token_store):
    return ProvisioningOrchestrator(
        client=mattermost_client,
        resolver=TeamResolver("http://mattermost.test"),
        token_store=token_store,
        public_base="http://gitlab.test",
    )


class TestOpen:
    """Tests for fetching and resolving teams."""

    @pytest.mark.asyncio
    async def test_no_teams(self, mattermost, orchestrator):
        mattermost.stub_teams(count=0)

        attempt = await orchestrator.open(1, "user-token")

        assert attempt.state == ProvisioningState.RESOLVED
        assert attempt.resolution == NoTeams()
        assert attempt.view.help_link.href == "http://mattermost.test/select_team"

    @pytest.mark.asyncio
    async def test_single_team(self, mattermost, orchestrator):
        mattermost.stub_teams(count=1)

        attempt = await orchestrator.open(1, "user-token")

        assert attempt.resolution == SingleTeam(team=Team(id="1", display_name="Team 1"))
        assert attempt.view.select.disabled is True
        assert attempt.view.hidden.value == "1"

    @pytest.mark.asyncio
    async def test_multiple_teams(self, mattermost, orchestrator):
        mattermost.stub_teams(count=2)

        attempt = await orchestrator.open(1, "user-token")

        assert isinstance(attempt.resolution, MultipleTeams)
        assert attempt.resolution.selection is None
        assert len(attempt.view.select.options) == 3

    @pytest.mark.asyncio
    async def test_fetch_failure(self, mattermost, orchestrator):
        mattermost.stub_error("test mattermost error message")

        attempt = await orchestrator.open(1, "user-token")

        assert attempt.state == ProvisioningState.FETCH_FAILED
        assert attempt.result == Failed(message="test mattermost error message")
        assert attempt.error == "test mattermost error message"
        assert attempt.view is None
        assert attempt.resolution is None
        assert attempt.finished

    @pytest.mark.asyncio
    async def test_error_payload_treated_as_failure(self, mattermost, orchestrator):
        mattermost.teams_response = httpx.Response(200, json="test mattermost error message")

        attempt = await orchestrator.open(1, "user-token")

        assert attempt.state == ProvisioningState.FETCH_FAILED
        assert attempt.error == "test mattermost error message"

    @pytest.mark.asyncio
    async def test_same_teams_same_resolution(self, mattermost, orchestrator):
        mattermost.stub_teams(count=3)

        first = await orchestrator.open(1, "user-token")
        second = await orchestrator.open(1, "user-token")

        assert first.resolution == second.resolution
        assert first.view == second.view
        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_disabled_integration(self, mattermost_client, token_store):
        orchestrator = ProvisioningOrchestrator(
            client=mattermost_client,
            resolver=TeamResolver("http://mattermost.test"),
            token_store=token_store,
            enabled=False,
        )

        with pytest.raises(IntegrationDisabledError):
            await orchestrator.open(1, "user-token")


class TestConfirm:
    """Tests for registering the command."""

    @pytest.mark.asyncio
    async def test_single_team_registers_preselected_team(self, mattermost, orchestrator, token_store):
        mattermost.stub_teams(count=1)
        attempt = await orchestrator.open(1, "user-token")

        result = await orchestrator.confirm(attempt, "user-token")

        assert result == Registered(team=Team(id="1", display_name="Team 1"))
        assert attempt.state == ProvisioningState.REGISTERED
        config = await token_store.get_config(1)
        assert config.active is True
        assert config.team_id == "1"
        assert config.token == "mm-generated-token"

    @pytest.mark.asyncio
    async def test_sends_command_definition(self, mattermost, orchestrator):
        mattermost.stub_teams(count=1)
        attempt = await orchestrator.open(42, "user-token")

        await orchestrator.confirm(attempt, "user-token", project_name="My Project")

        body = json.loads(mattermost.requests_to("/api/v4/commands")[0].content)
        assert body["team_id"] == "1"
        assert body["url"] == "http://gitlab.test/api/v3/projects/42/services/mattermost_slash_commands/trigger"
        assert body["trigger"] == "my-project"
        assert body["icon_url"] == "http://gitlab.test/slash-command-logo.png"
        assert body["method"] == "P"

    @pytest.mark.asyncio
    async def test_multiple_teams_requires_selection(self, mattermost, orchestrator):
        mattermost.stub_teams(count=2)
        attempt = await orchestrator.open(1, "user-token")

        with pytest.raises(ValidationError):
            await orchestrator.confirm(attempt, "user-token")

        assert attempt.state == ProvisioningState.RESOLVED
        assert mattermost.requests_to("/api/v4/commands") == []

    @pytest.mark.asyncio
    async def test_multiple_teams_placeholder_rejected(self, mattermost, orchestrator):
        mattermost.stub_teams(count=2)
        attempt = await orchestrator.open(1, "user-token")

        with pytest.raises(ValidationError):
            await orchestrator.confirm(attempt, "user-token", team_id="")

        assert attempt.state == ProvisioningState.RESOLVED

    @pytest.mark.asyncio
    async def test_multiple_teams_unknown_team_rejected(self, mattermost, orchestrator):
        mattermost.stub_teams(count=2)
        attempt = await orchestrator.open(1, "user-token")

        with pytest.raises(ValidationError):
            await orchestrator.confirm(attempt, "user-token", team_id="99")

    @pytest.mark.asyncio
    async def test_multiple_teams_select_then_confirm(self, mattermost, orchestrator):
        mattermost.stub_teams(count=2)
        attempt = await orchestrator.open(1, "user-token")

        orchestrator.select_team(attempt, "2")
        result = await orchestrator.confirm(attempt, "user-token")

        assert result == Registered(team=Team(id="2", display_name="Team 2"))

    @pytest.mark.asyncio
    async def test_multiple_teams_confirm_with_team_id(self, mattermost, orchestrator):
        mattermost.stub_teams(count=3)
        attempt = await orchestrator.open(1, "user-token")

        result = await orchestrator.confirm(attempt, "user-token", team_id="3")

        assert isinstance(result, Registered)
        assert result.team.id == "3"

    @pytest.mark.asyncio
    async def test_no_teams_cannot_submit(self, mattermost, orchestrator):
        mattermost.stub_teams(count=0)
        attempt = await orchestrator.open(1, "user-token")

        with pytest.raises(InvalidStateError):
            await orchestrator.confirm(attempt, "user-token")

    @pytest.mark.asyncio
    async def test_register_failure_leaves_config_untouched(self, mattermost, orchestrator, token_store):
        await token_store.set_token(1, "existing-token")
        mattermost.stub_teams(count=1)
        mattermost.command_response = httpx.Response(
            500, json={"message": "Unable to create the command", "status_code": 500}
        )
        attempt = await orchestrator.open(1, "user-token")

        result = await orchestrator.confirm(attempt, "user-token")

        assert result == Failed(message="Unable to create the command")
        assert attempt.state == ProvisioningState.REGISTER_FAILED
        config = await token_store.get_config(1)
        assert config.token == "existing-token"
        assert config.active is False

    @pytest.mark.asyncio
    async def test_save_failure_after_registration_is_reported(self, mattermost, orchestrator, token_store):
        mattermost.stub_teams(count=1)
        attempt = await orchestrator.open(1, "user-token")

        with patch.object(token_store, "mark_registered", AsyncMock(side_effect=RuntimeError("disk full"))):
            result = await orchestrator.confirm(attempt, "user-token")

        assert isinstance(result, Failed)
        assert "were added to Team 1" in result.message
        assert "could not be saved: disk full" in result.message
        assert attempt.state == ProvisioningState.REGISTER_FAILED
        assert attempt.finished
        assert len(mattermost.requests_to("/api/v4/commands")) == 1

    @pytest.mark.asyncio
    async def test_finished_attempt_cannot_be_confirmed_again(self, mattermost, orchestrator):
        mattermost.stub_teams(count=1)
        attempt = await orchestrator.open(1, "user-token")
        await orchestrator.confirm(attempt, "user-token")

        with pytest.raises(InvalidStateError):
            await orchestrator.confirm(attempt, "user-token")

        assert len(mattermost.requests_to("/api/v4/commands")) == 1

    @pytest.mark.asyncio
    async def test_failed_fetch_cannot_be_confirmed(self, mattermost, orchestrator):
        mattermost.stub_error("down")
        attempt = await orchestrator.open(1, "user-token")

        with pytest.raises(InvalidStateError):
            await orchestrator.confirm(attempt, "user-token")

    @pytest.mark.asyncio
    async def test_select_team_requires_resolved_attempt(self, orchestrator):
        with pytest.raises(InvalidStateError):
            orchestrator.select_team(ProvisioningAttempt(project_id=1), "1")


class TestProvisioningAttempt:
    """Tests for attempt state transitions."""

    def test_starts_idle(self):
        attempt = ProvisioningAttempt(project_id=1)

        assert attempt.state == ProvisioningState.IDLE
        assert not attempt.finished

    def test_cannot_skip_fetching(self):
        attempt = ProvisioningAttempt(project_id=1)

        with pytest.raises(InvalidStateError):
            attempt.transition(ProvisioningState.RESOLVED)

    def test_failed_states_are_terminal(self):
        attempt = ProvisioningAttempt(project_id=1)
        attempt.transition(ProvisioningState.FETCHING)
        attempt.transition(ProvisioningState.FETCH_FAILED)

        with pytest.raises(InvalidStateError):
            attempt.transition(ProvisioningState.FETCHING)
