"""Team resolution and provisioning of the Mattermost slash commands."""

from src.provisioning.orchestrator import (
    Failed,
    ProvisioningAttempt,
    ProvisioningOrchestrator,
    ProvisioningResult,
    ProvisioningState,
    Registered,
)
from src.provisioning.resolver import (
    MultipleTeams,
    NoTeams,
    ResolutionState,
    SingleTeam,
    TeamResolver,
    TeamSelectionView,
)

__all__ = [
    "Failed",
    "ProvisioningAttempt",
    "ProvisioningOrchestrator",
    "ProvisioningResult",
    "ProvisioningState",
    "Registered",
    "MultipleTeams",
    "NoTeams",
    "ResolutionState",
    "SingleTeam",
    "TeamResolver",
    "TeamSelectionView",
]
