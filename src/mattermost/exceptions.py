"""Mattermost API exception classes."""

from typing import Optional


class UpstreamError(Exception):
    """Raised for any failure talking to Mattermost.

    Covers transport errors, non-success responses and malformed payloads.
    ``message`` is the text Mattermost returned when it returned one.
    """
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)
