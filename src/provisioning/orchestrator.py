"""Provisioning flow for adding the slash commands to a Mattermost team.

One attempt walks through::

    IDLE -> FETCHING -> RESOLVED -> REGISTERING -> REGISTERED
                 |                        |
                 +-> FETCH_FAILED         +-> REGISTER_FAILED

Failures are terminal for the attempt. Nothing is retried; the user starts
a new attempt instead.
"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from src.mattermost.client import MattermostClient
from src.mattermost.exceptions import UpstreamError
from src.mattermost.models import Team
from src.provisioning.resolver import NoTeams, ResolutionState, TeamResolver, TeamSelectionView
from src.slash_commands.command import SlashCommand
from src.slash_commands.exceptions import IntegrationDisabledError, InvalidStateError, ValidationError
from src.slash_commands.token_store import TokenStore

logger = logging.getLogger(__name__)


class ProvisioningState(str, Enum):
    """States of a provisioning attempt."""

    IDLE = "idle"
    FETCHING = "fetching"
    RESOLVED = "resolved"
    FETCH_FAILED = "fetch_failed"
    REGISTERING = "registering"
    REGISTERED = "registered"
    REGISTER_FAILED = "register_failed"


_TRANSITIONS = {
    ProvisioningState.IDLE: {ProvisioningState.FETCHING},
    ProvisioningState.FETCHING: {ProvisioningState.RESOLVED, ProvisioningState.FETCH_FAILED},
    ProvisioningState.RESOLVED: {ProvisioningState.REGISTERING},
    ProvisioningState.REGISTERING: {ProvisioningState.REGISTERED, ProvisioningState.REGISTER_FAILED},
}

TERMINAL_STATES = frozenset({
    ProvisioningState.FETCH_FAILED,
    ProvisioningState.REGISTERED,
    ProvisioningState.REGISTER_FAILED,
})


@dataclass(frozen=True)
class Registered:
    """The command was created in ``team``."""

    team: Team


@dataclass(frozen=True)
class Failed:
    """A provisioning step failed; ``message`` is shown to the user verbatim."""

    message: str


ProvisioningResult = Union[Registered, Failed]


@dataclass
class ProvisioningAttempt:
    """A single run of the 'Add to Mattermost' flow."""

    project_id: int
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: ProvisioningState = ProvisioningState.IDLE
    resolution: Optional[ResolutionState] = None
    view: Optional[TeamSelectionView] = None
    result: Optional[ProvisioningResult] = None

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def error(self) -> Optional[str]:
        if isinstance(self.result, Failed):
            return self.result.message
        return None

    def transition(self, new_state: ProvisioningState) -> None:
        """Move to ``new_state``.

        Raises:
            InvalidStateError: If the move is not allowed from the current state
        """
        if new_state not in _TRANSITIONS.get(self.state, set()):
            raise InvalidStateError(self.state.value, f"move to {new_state.value}")
        logger.debug("Attempt %s: %s -> %s", self.id, self.state.value, new_state.value)
        self.state = new_state


class ProvisioningOrchestrator:
    """Coordinate team lookup, team selection and command registration."""

    def __init__(
        self,
        client: MattermostClient,
        resolver: TeamResolver,
        token_store: TokenStore,
        enabled: bool = True,
        public_base: str = "",
    ):
        """Initialize the orchestrator.

        Args:
            client: Mattermost API client
            resolver: Team resolver for the configured Mattermost host
            token_store: Storage for the project's integration settings
            enabled: Whether the Mattermost integration is turned on
            public_base: Public URL the command icon is served from
        """
        self.client = client
        self.resolver = resolver
        self.token_store = token_store
        self.enabled = enabled
        self.public_base = public_base

    async def open(self, project_id: int, credentials: str) -> ProvisioningAttempt:
        """Start an attempt by fetching the user's teams.

        Args:
            project_id: Project the command is provisioned for
            credentials: Mattermost access token of the user

        Returns:
            The attempt, either RESOLVED with a selection view or FETCH_FAILED

        Raises:
            IntegrationDisabledError: If the integration is turned off
        """
        self._ensure_enabled()
        attempt = ProvisioningAttempt(project_id=project_id)
        attempt.transition(ProvisioningState.FETCHING)

        try:
            teams = await self.client.list_teams(credentials)
        except UpstreamError as e:
            logger.warning("Listing Mattermost teams failed for project %s: %s", project_id, e.message)
            attempt.result = Failed(message=e.message)
            attempt.transition(ProvisioningState.FETCH_FAILED)
            return attempt

        attempt.resolution = self.resolver.resolve(teams)
        attempt.view = self.resolver.view(attempt.resolution)
        attempt.transition(ProvisioningState.RESOLVED)
        logger.info(
            "Resolved %d Mattermost team(s) for project %s as %s",
            len(teams), project_id, type(attempt.resolution).__name__,
        )
        return attempt

    def select_team(self, attempt: ProvisioningAttempt, team_id: Optional[str]) -> ProvisioningAttempt:
        """Record the team the user picked.

        Raises:
            InvalidStateError: If the attempt is not waiting for a selection
            ValidationError: If the id is the placeholder or not a fetched team
        """
        if attempt.state != ProvisioningState.RESOLVED:
            raise InvalidStateError(attempt.state.value, "select a team")
        attempt.resolution = self.resolver.select(attempt.resolution, team_id)
        attempt.view = self.resolver.view(attempt.resolution)
        return attempt

    async def confirm(
        self,
        attempt: ProvisioningAttempt,
        credentials: str,
        team_id: Optional[str] = None,
        project_name: Optional[str] = None,
    ) -> ProvisioningResult:
        """Register the command in the selected team.

        Args:
            attempt: A RESOLVED attempt
            credentials: Mattermost access token of the user
            team_id: Team submitted with the form; overrides an earlier selection
            project_name: Name used for the command trigger and display name

        Returns:
            Registered on success, Failed with Mattermost's message otherwise

        Raises:
            IntegrationDisabledError: If the integration is turned off
            InvalidStateError: If the attempt cannot be submitted
            ValidationError: If no valid team is selected
        """
        self._ensure_enabled()
        if attempt.state != ProvisioningState.RESOLVED:
            raise InvalidStateError(attempt.state.value, "add the slash commands")
        if isinstance(attempt.resolution, NoTeams):
            raise InvalidStateError("without teams", "add the slash commands")

        if team_id is not None:
            self.select_team(attempt, team_id)
        team = self.resolver.selected_team(attempt.resolution)
        if team is None:
            raise ValidationError("Select a team to add the slash commands to")

        attempt.transition(ProvisioningState.REGISTERING)
        trigger_url = self.token_store.trigger_url(attempt.project_id)
        command = SlashCommand.for_project(attempt.project_id, trigger_url, self.public_base, project_name)

        try:
            registered = await self.client.register_command(team.id, command.to_params(), credentials)
        except UpstreamError as e:
            logger.warning(
                "Registering slash commands for project %s in team %s failed: %s",
                attempt.project_id, team.id, e.message,
            )
            attempt.result = Failed(message=e.message)
            attempt.transition(ProvisioningState.REGISTER_FAILED)
            return attempt.result

        try:
            await self.token_store.mark_registered(attempt.project_id, team.id, registered.token)
        except Exception as e:
            logger.exception(
                "Saving slash command settings for project %s failed after registering in team %s",
                attempt.project_id, team.id,
            )
            attempt.result = Failed(
                message=(
                    f"The slash commands were added to {team.display_name} in Mattermost, "
                    f"but the settings could not be saved: {e}"
                ),
            )
            attempt.transition(ProvisioningState.REGISTER_FAILED)
            return attempt.result

        attempt.result = Registered(team=team)
        attempt.transition(ProvisioningState.REGISTERED)
        return attempt.result

    def _ensure_enabled(self) -> None:
        if not self.enabled:
            raise IntegrationDisabledError()
