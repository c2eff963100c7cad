"""Pydantic schemas for the slash command setup API."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CommandSettingsResponse(BaseModel):
    """Values to enter when creating the command in Mattermost by hand."""

    model_config = ConfigDict(from_attributes=True)

    trigger: str
    url: str
    method: str
    display_name: str
    description: str
    icon_url: str
    auto_complete_hint: str
    username: str


class ServiceResponse(BaseModel):
    """Configuration page data for a project's slash commands."""

    project_id: int
    token: str
    request_url: str
    active: bool
    team_id: Optional[str] = None
    mattermost_enabled: bool
    help: str
    command: CommandSettingsResponse


class TokenUpdateRequest(BaseModel):
    """Request schema for saving the token."""

    token: str = Field(..., min_length=1, description="Token Mattermost sends with each command")


class SelectOptionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    value: str
    label: str
    selected: bool
    disabled: bool


class SelectFieldSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    disabled: bool
    options: list[SelectOptionSchema]


class HiddenFieldSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    value: str


class HelpLinkSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    label: str
    href: str


class TeamSelectionResponse(BaseModel):
    """Team selection form for an open attempt."""

    model_config = ConfigDict(from_attributes=True)

    message: str
    select: Optional[SelectFieldSchema] = None
    hidden: Optional[HiddenFieldSchema] = None
    help_link: Optional[HelpLinkSchema] = None
    can_submit: bool


class AttemptResponse(BaseModel):
    """Response schema for opening the 'Add to Mattermost' flow."""

    attempt_id: str
    state: str
    view: TeamSelectionResponse


class InstallRequest(BaseModel):
    """Request schema for adding the command to a team."""

    attempt_id: str = Field(..., min_length=1)
    team_id: Optional[str] = Field(default=None, description="Selected Mattermost team id")
    project_name: Optional[str] = Field(default=None, max_length=255)


class InstallResponse(BaseModel):
    """Response schema for a successful installation."""

    state: str
    team_id: str
    team_name: str
    message: str


class AlertResponse(BaseModel):
    """Error shown to the user in an alert."""

    state: str
    alert: str
