"""HTTP interface for the Mattermost slash command setup."""

from src.web.server import create_app

__all__ = ["create_app"]
