"""In-process registry of open provisioning attempts."""

import logging
from collections import OrderedDict
from typing import Optional

from src.provisioning.orchestrator import ProvisioningAttempt

logger = logging.getLogger(__name__)


class AttemptRegistry:
    """Keep RESOLVED attempts until the user submits them.

    Finished attempts are dropped, so a late or repeated submission for the
    same attempt is rejected and the user has to start over. The oldest
    attempts are evicted once ``max_size`` is reached.
    """

    def __init__(self, max_size: int = 1000):
        self.max_size = max_size
        self._attempts: OrderedDict[str, ProvisioningAttempt] = OrderedDict()

    def __len__(self) -> int:
        return len(self._attempts)

    def add(self, attempt: ProvisioningAttempt) -> None:
        if attempt.finished:
            return
        self._attempts[attempt.id] = attempt
        while len(self._attempts) > self.max_size:
            evicted, _ = self._attempts.popitem(last=False)
            logger.debug("Evicted provisioning attempt %s", evicted)

    def get(self, attempt_id: str, project_id: int) -> Optional[ProvisioningAttempt]:
        """Return the attempt if it exists and belongs to ``project_id``."""
        attempt = self._attempts.get(attempt_id)
        if attempt is None or attempt.project_id != project_id:
            return None
        return attempt

    def discard(self, attempt_id: str) -> None:
        self._attempts.pop(attempt_id, None)
