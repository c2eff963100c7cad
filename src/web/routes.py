"""Slash command setup routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from src.provisioning.attempts import AttemptRegistry
from src.provisioning.orchestrator import Failed, ProvisioningOrchestrator, ProvisioningState
from src.slash_commands.command import SlashCommand
from src.slash_commands.config import INTEGRATION_NAME, SlashCommandSettings
from src.slash_commands.exceptions import IntegrationDisabledError, InvalidStateError, ValidationError
from src.slash_commands.token_store import TokenStore
from src.web.dependencies import (
    get_attempts,
    get_credentials,
    get_orchestrator,
    get_settings,
    get_token_store,
)
from src.web.schemas import (
    AlertResponse,
    AttemptResponse,
    CommandSettingsResponse,
    InstallRequest,
    InstallResponse,
    ServiceResponse,
    TeamSelectionResponse,
    TokenUpdateRequest,
)

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "This service allows users to perform common operations on this project "
    "by entering slash commands in Mattermost."
)

router = APIRouter(
    prefix=f"/projects/{{project_id}}/services/{INTEGRATION_NAME}",
    tags=["Mattermost slash commands"],
)


async def _service_response(
    project_id: int,
    token_store: TokenStore,
    settings: SlashCommandSettings,
) -> ServiceResponse:
    token = await token_store.get_or_create_token(project_id)
    config = await token_store.get_config(project_id)
    request_url = token_store.trigger_url(project_id)
    command = SlashCommand.for_project(project_id, request_url, settings.public_base)
    return ServiceResponse(
        project_id=project_id,
        token=token,
        request_url=request_url,
        active=config.active,
        team_id=config.team_id,
        mattermost_enabled=settings.mattermost_enabled,
        help=HELP_TEXT,
        command=CommandSettingsResponse.model_validate(command),
    )


def _alert(state: ProvisioningState, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=AlertResponse(state=state.value, alert=message).model_dump(),
    )


@router.get("", response_model=ServiceResponse)
async def show_service(
    project_id: int,
    token_store: TokenStore = Depends(get_token_store),
    settings: SlashCommandSettings = Depends(get_settings),
) -> ServiceResponse:
    """Return the slash command configuration of a project.

    A token is generated on first access.
    """
    return await _service_response(project_id, token_store, settings)


@router.put("", response_model=ServiceResponse)
async def save_token(
    project_id: int,
    request: TokenUpdateRequest,
    token_store: TokenStore = Depends(get_token_store),
    settings: SlashCommandSettings = Depends(get_settings),
) -> ServiceResponse:
    """Save a token entered by the user."""
    try:
        await token_store.set_token(project_id, request.token)
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=str(e),
        )
    logger.info(
        f"AUDIT: Slash command token saved for project {project_id}",
        extra={"event_type": "slash_token_saved", "project_id": project_id},
    )
    return await _service_response(project_id, token_store, settings)


@router.post(
    "/teams",
    response_model=AttemptResponse,
    responses={
        403: {"description": "Mattermost integration is not enabled"},
        502: {"model": AlertResponse, "description": "Mattermost request failed"},
    },
)
async def open_provisioning(
    project_id: int,
    credentials: str = Depends(get_credentials),
    orchestrator: ProvisioningOrchestrator = Depends(get_orchestrator),
    attempts: AttemptRegistry = Depends(get_attempts),
):
    """Start 'Add to Mattermost': list the user's teams and build the form."""
    logger.info(
        f"AUDIT: Add to Mattermost opened for project {project_id}",
        extra={"event_type": "provisioning_opened", "project_id": project_id},
    )
    try:
        attempt = await orchestrator.open(project_id, credentials)
    except IntegrationDisabledError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

    if attempt.state == ProvisioningState.FETCH_FAILED:
        logger.warning(
            f"AUDIT: Listing Mattermost teams failed for project {project_id}",
            extra={"event_type": "provisioning_fetch_failed", "project_id": project_id, "error": attempt.error},
        )
        return _alert(attempt.state, attempt.error)

    attempts.add(attempt)
    return AttemptResponse(
        attempt_id=attempt.id,
        state=attempt.state.value,
        view=TeamSelectionResponse.model_validate(attempt.view),
    )


@router.post(
    "/install",
    response_model=InstallResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"description": "Mattermost integration is not enabled"},
        404: {"description": "Unknown or finished attempt"},
        409: {"description": "Attempt cannot be submitted"},
        422: {"description": "No valid team selected"},
        502: {"model": AlertResponse, "description": "Mattermost request failed"},
    },
)
async def install(
    project_id: int,
    request: InstallRequest,
    credentials: str = Depends(get_credentials),
    orchestrator: ProvisioningOrchestrator = Depends(get_orchestrator),
    attempts: AttemptRegistry = Depends(get_attempts),
):
    """Add the slash commands to the selected team."""
    attempt = attempts.get(request.attempt_id, project_id)
    if attempt is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Unknown provisioning attempt, please start again",
        )

    logger.info(
        f"AUDIT: Adding slash commands for project {project_id} to team {request.team_id}",
        extra={"event_type": "provisioning_confirmed", "project_id": project_id, "team_id": request.team_id},
    )
    try:
        result = await orchestrator.confirm(attempt, credentials, request.team_id, request.project_name)
    except IntegrationDisabledError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except InvalidStateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    finally:
        if attempt.finished:
            attempts.discard(attempt.id)

    if isinstance(result, Failed):
        logger.warning(
            f"AUDIT: Adding slash commands failed for project {project_id}",
            extra={"event_type": "provisioning_register_failed", "project_id": project_id, "error": result.message},
        )
        return _alert(attempt.state, result.message)

    return InstallResponse(
        state=attempt.state.value,
        team_id=result.team.id,
        team_name=result.team.display_name,
        message=f"Mattermost slash commands were added to {result.team.display_name}",
    )
