"""Team resolution for the 'Add to Mattermost' flow.

Turns the teams fetched from Mattermost into one of three states and the
form the user is shown:

- no teams: an explanation and a link to join a team, nothing to submit
- one team: a disabled select pre-filled with the team, plus a hidden
  field carrying its id (disabled controls are not submitted with a form)
- several teams: an enabled select whose first, selected option is a
  placeholder that is never a valid value
"""

import dataclasses
from dataclasses import dataclass
from typing import Optional, Union

from src.mattermost.models import Team
from src.slash_commands.exceptions import ValidationError

TEAM_FIELD_ID = "mattermost_team_id"
TEAM_FIELD_NAME = "mattermost[team_id]"
PLACEHOLDER_LABEL = "Select team..."

NO_TEAMS_MESSAGE = (
    "You aren’t a member of any team on the Mattermost instance at {host}. "
    "Please join a team to add the slash commands."
)
SINGLE_TEAM_MESSAGE = "The team where the slash commands will be used in. This is the only available team."
MULTIPLE_TEAMS_MESSAGE = (
    "Select the team where the slash commands will be used in. The list shows all available teams."
)


@dataclass(frozen=True)
class NoTeams:
    """The user is not a member of any team."""

    pass


@dataclass(frozen=True)
class SingleTeam:
    """Exactly one team was fetched; it is pre-selected."""

    team: Team


@dataclass(frozen=True)
class MultipleTeams:
    """Several teams were fetched; the user has to pick one."""

    teams: tuple[Team, ...]
    selection: Optional[Team] = None


ResolutionState = Union[NoTeams, SingleTeam, MultipleTeams]


@dataclass(frozen=True)
class SelectOption:
    value: str
    label: str
    selected: bool = False
    disabled: bool = False


@dataclass(frozen=True)
class SelectField:
    id: str
    name: str
    disabled: bool
    options: tuple[SelectOption, ...]


@dataclass(frozen=True)
class HiddenField:
    id: str
    name: str
    value: str


@dataclass(frozen=True)
class HelpLink:
    label: str
    href: str


@dataclass(frozen=True)
class TeamSelectionView:
    """What the presentation layer renders for a resolution state."""

    message: str
    select: Optional[SelectField] = None
    hidden: Optional[HiddenField] = None
    help_link: Optional[HelpLink] = None
    can_submit: bool = False


class TeamResolver:
    """Classify fetched teams and build the team selection form."""

    def __init__(self, mattermost_host: str):
        self.mattermost_host = mattermost_host.rstrip("/")

    def resolve(self, teams: tuple[Team, ...]) -> ResolutionState:
        """Return the resolution state for a fetched team set."""
        if not teams:
            return NoTeams()
        if len(teams) == 1:
            return SingleTeam(team=teams[0])
        return MultipleTeams(teams=tuple(teams))

    def select(self, state: ResolutionState, team_id: Optional[str]) -> ResolutionState:
        """Record the user's pick among the fetched teams.

        Raises:
            ValidationError: If nothing can be selected or the id is not one
                of the fetched teams (the placeholder included)
        """
        if isinstance(state, NoTeams):
            raise ValidationError("There is no team to select")
        team = _find_team(_teams_of(state), team_id)
        if team is None:
            raise ValidationError("Select a team to add the slash commands to")
        if isinstance(state, SingleTeam):
            return state
        return dataclasses.replace(state, selection=team)

    def selected_team(self, state: ResolutionState) -> Optional[Team]:
        """Return the team a submission would register against, if any."""
        if isinstance(state, SingleTeam):
            return state.team
        if isinstance(state, MultipleTeams):
            return state.selection
        return None

    def view(self, state: ResolutionState) -> TeamSelectionView:
        """Build the form shown to the user for a resolution state."""
        if isinstance(state, NoTeams):
            return TeamSelectionView(
                message=NO_TEAMS_MESSAGE.format(host=self.mattermost_host),
                help_link=HelpLink(label="join a team", href=f"{self.mattermost_host}/select_team"),
            )

        if isinstance(state, SingleTeam):
            option = SelectOption(value=state.team.id, label=state.team.display_name, selected=True)
            return TeamSelectionView(
                message=SINGLE_TEAM_MESSAGE,
                select=SelectField(id=TEAM_FIELD_ID, name=TEAM_FIELD_NAME, disabled=True, options=(option,)),
                hidden=HiddenField(id=TEAM_FIELD_ID, name=TEAM_FIELD_NAME, value=state.team.id),
                can_submit=True,
            )

        selected_id = state.selection.id if state.selection else None
        placeholder = SelectOption(value="", label=PLACEHOLDER_LABEL, selected=selected_id is None, disabled=True)
        options = (placeholder,) + tuple(
            SelectOption(value=team.id, label=team.display_name, selected=team.id == selected_id)
            for team in state.teams
        )
        return TeamSelectionView(
            message=MULTIPLE_TEAMS_MESSAGE,
            select=SelectField(id=TEAM_FIELD_ID, name=TEAM_FIELD_NAME, disabled=False, options=options),
            can_submit=True,
        )


def _teams_of(state: ResolutionState) -> tuple[Team, ...]:
    if isinstance(state, SingleTeam):
        return (state.team,)
    if isinstance(state, MultipleTeams):
        return state.teams
    return ()


def _find_team(teams: tuple[Team, ...], team_id: Optional[str]) -> Optional[Team]:
    if not team_id:
        return None
    for team in teams:
        if team.id == str(team_id):
            return team
    return None
