"""Build status lifecycle."""

from __future__ import annotations

from enum import Enum

from sofaci.core.errors import InvalidTransition
from sofaci.core.log import logger


class BuildStatus(str, Enum):
    PENDING = "pending"
    BUILDING = "building"
    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"
    ABORTED = "aborted"
    IGNORED = "ignored"

    @property
    def is_terminal(self) -> bool:
        return self not in (BuildStatus.PENDING, BuildStatus.BUILDING)

    @property
    def exit_code(self) -> int:
        """Process exit code for a run ending in this status."""
        if self in (BuildStatus.SUCCESS, BuildStatus.IGNORED):
            return 0
        return 1


# Position in the lifecycle; every terminal status shares the last rank
_RANK = {
    BuildStatus.PENDING: 0,
    BuildStatus.BUILDING: 1,
}


class StatusTracker:
    """Holds the single current status of a run and its history.

    Transitions only move forward: pending → building → one terminal
    status. Nothing leaves a terminal status.
    """

    def __init__(self):
        self.history: list[BuildStatus] = [BuildStatus.PENDING]

    @property
    def current(self) -> BuildStatus:
        return self.history[-1]

    @property
    def finished(self) -> bool:
        return self.current.is_terminal

    def advance(self, status: BuildStatus) -> BuildStatus:
        """Move to `status`.

        Re-entering the current non-terminal status is a no-op.

        Raises:
            InvalidTransition: If the run already finished or `status`
                lies behind the current one
        """
        current = self.current
        if current.is_terminal:
            raise InvalidTransition(
                f"run already finished as {current.value}, "
                f"cannot become {status.value}"
            )
        if status == current:
            return current
        if _RANK.get(status, 2) < _RANK[current]:
            raise InvalidTransition(
                f"cannot go back from {current.value} to {status.value}"
            )

        logger.debug(f"Build status {current.value} -> {status.value}")
        self.history.append(status)
        return status
