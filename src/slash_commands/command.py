"""Slash command definition sent to Mattermost."""

import re
from dataclasses import dataclass
from typing import Any, Optional

LOGO_PATH = "/slash-command-logo.png"

# Anything Mattermost does not accept in a command trigger
_TRIGGER_INVALID = re.compile(r"[^a-z0-9_-]+")


@dataclass
class SlashCommand:
    """Fields of the slash command created in a Mattermost team.

    The same values are shown on the configuration page for users who set
    the command up by hand.
    """

    trigger: str
    url: str
    display_name: str
    description: str
    icon_url: str
    auto_complete_hint: str = "[help]"
    username: str = "Slash Commands"
    method: str = "P"

    @classmethod
    def for_project(
        cls,
        project_id: int,
        trigger_url: str,
        public_base: str,
        project_name: Optional[str] = None,
    ) -> "SlashCommand":
        """Build the command for a project.

        Args:
            project_id: Project identifier
            trigger_url: URL Mattermost will POST the command to
            public_base: Public URL the icon is served from
            project_name: Human readable project name, if known

        Returns:
            SlashCommand instance
        """
        name = project_name or f"project-{project_id}"
        trigger = _TRIGGER_INVALID.sub("-", name.lower()).strip("-") or f"project-{project_id}"
        return cls(
            trigger=trigger,
            url=trigger_url,
            display_name=f"Slash Commands / {name}",
            description=f"Perform common operations on: {name}",
            icon_url=public_base.rstrip("/") + LOGO_PATH,
        )

    def to_params(self) -> dict[str, Any]:
        """Return the request body for the Mattermost commands API."""
        return {
            "trigger": self.trigger,
            "url": self.url,
            "method": self.method,
            "display_name": self.display_name,
            "description": self.description,
            "auto_complete": True,
            "auto_complete_desc": self.description,
            "auto_complete_hint": self.auto_complete_hint,
            "icon_url": self.icon_url,
            "username": self.username,
        }
