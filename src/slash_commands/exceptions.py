"""Slash command integration exception classes."""


class SlashCommandsError(Exception):
    """Base exception for slash command integration errors."""
    pass


class ValidationError(SlashCommandsError):
    """Raised when user input is rejected."""
    pass


class InvalidStateError(SlashCommandsError):
    """Raised when a provisioning step is requested out of order."""
    def __init__(self, state: str, action: str):
        self.state = state
        self.action = action
        super().__init__(f"Cannot {action} while provisioning is {state}")


class IntegrationDisabledError(SlashCommandsError):
    """Raised when the Mattermost integration is turned off."""
    def __init__(self, message: str = "Mattermost integration is not enabled"):
        super().__init__(message)
