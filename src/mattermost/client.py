"""Async Mattermost REST API client.

Only the two calls needed to provision a slash command are implemented:
listing the teams of the authenticated user and creating a command in a
team. Every failure is normalized into ``UpstreamError``; nothing is retried.
"""

import logging
from typing import Any, Optional

import httpx

from src.mattermost.exceptions import UpstreamError
from src.mattermost.models import RegisteredCommand, Team

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v4"


class MattermostClient:
    """Talk to a Mattermost server on behalf of a user.

    Credentials are a Mattermost session or personal access token, sent as
    a bearer token with each request.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Mattermost server URL, e.g. http://localhost:8065
            timeout: Transport timeout in seconds for each request
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url + API_PREFIX,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._http.aclose()

    # ------------------------------------------------------------------
    # API calls
    # ------------------------------------------------------------------

    async def list_teams(self, credentials: str) -> tuple[Team, ...]:
        """List the teams the authenticated user is a member of.

        Args:
            credentials: Mattermost access token

        Returns:
            Teams in the order Mattermost returned them

        Raises:
            UpstreamError: On any transport, status or payload failure
        """
        payload = await self._request("GET", "/users/me/teams", credentials)
        if not isinstance(payload, list):
            raise UpstreamError("Unexpected response from Mattermost when listing teams")

        teams: list[Team] = []
        seen: set[str] = set()
        for item in payload:
            if not isinstance(item, dict) or "id" not in item:
                raise UpstreamError("Unexpected response from Mattermost when listing teams")
            team_id = str(item["id"])
            if team_id in seen:
                logger.warning("Ignoring duplicate team %s in Mattermost response", team_id)
                continue
            seen.add(team_id)
            display_name = item.get("display_name") or item.get("name") or team_id
            teams.append(Team(id=team_id, display_name=str(display_name)))

        logger.info("Fetched %d Mattermost team(s)", len(teams))
        return tuple(teams)

    async def register_command(
        self,
        team_id: str,
        params: dict[str, Any],
        credentials: str,
    ) -> RegisteredCommand:
        """Create a slash command in a team.

        Args:
            team_id: Mattermost team id
            params: Command fields (trigger, url, method, display_name, ...)
            credentials: Mattermost access token

        Returns:
            RegisteredCommand with the token Mattermost generated

        Raises:
            UpstreamError: On any transport, status or payload failure
        """
        body = dict(params)
        body["team_id"] = team_id
        payload = await self._request("POST", "/commands", credentials, json=body)
        if not isinstance(payload, dict) or not payload.get("token"):
            raise UpstreamError("Unexpected response from Mattermost when creating the command")

        logger.info("Registered slash command '%s' in team %s", body.get("trigger", ""), team_id)
        return RegisteredCommand(
            id=str(payload.get("id", "")),
            team_id=str(payload.get("team_id") or team_id),
            token=str(payload["token"]),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        credentials: str,
        json: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Send a request and return the decoded JSON payload."""
        headers = {"Authorization": f"Bearer {credentials}"}
        try:
            response = await self._http.request(method, path, headers=headers, json=json)
        except httpx.HTTPError as e:
            logger.warning("Mattermost request %s %s failed: %s", method, path, e)
            raise UpstreamError(f"Failed to connect to Mattermost: {e}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not response.is_success:
            message = _error_message(payload) or f"Mattermost responded with HTTP {response.status_code}"
            logger.warning("Mattermost request %s %s returned %d: %s", method, path, response.status_code, message)
            raise UpstreamError(message, status_code=response.status_code)

        if payload is None:
            raise UpstreamError("Mattermost returned an invalid response", status_code=response.status_code)

        # Some Mattermost deployments answer 200 with an error body.
        if isinstance(payload, str) or (isinstance(payload, dict) and _is_error_object(payload)):
            message = _error_message(payload) or "Mattermost returned an error"
            logger.warning("Mattermost request %s %s returned an error payload: %s", method, path, message)
            raise UpstreamError(message, status_code=response.status_code)

        return payload


def _is_error_object(payload: dict[str, Any]) -> bool:
    status_code = payload.get("status_code")
    return isinstance(status_code, int) and status_code >= 400


def _error_message(payload: Any) -> str:
    if isinstance(payload, dict):
        payload = payload.get("message")
    if isinstance(payload, str) and payload.strip():
        return payload
    return ""
