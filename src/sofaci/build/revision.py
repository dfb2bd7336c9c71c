"""Source revision queries against git."""

from __future__ import annotations

import shlex
from pathlib import Path

from sofaci.core.config import GitCommands
from sofaci.core.errors import VcsUnavailable
from sofaci.core.log import logger
from sofaci.core.runner import Runner
from sofaci.state.cache import BuildCacheState


class RevisionTracker:
    """Read-only view of the source tree's version history."""

    def __init__(
        self,
        src_dir: Path,
        commands: GitCommands | None = None,
        runner: Runner | None = None,
    ):
        self.src_dir = src_dir
        self.commands = commands or GitCommands()
        self.runner = runner or Runner()

    def _git(self, command: str) -> str:
        try:
            result = self.runner.execute(command, cwd=self.src_dir, check=False)
        except Exception as e:
            raise VcsUnavailable(command, str(e)) from e

        if result.exited != 0:
            raise VcsUnavailable(command, result.stderr.strip())
        return result.stdout

    def current_revision(self) -> str:
        """Commit hash checked out in the source directory.

        Raises:
            VcsUnavailable: If git cannot be queried
        """
        revision = self._git(self.commands.current_revision).strip()
        if not revision:
            raise VcsUnavailable(
                self.commands.current_revision, "empty revision"
            )
        return revision

    @staticmethod
    def last_built_revision(cache: BuildCacheState) -> str | None:
        return cache.last_built_revision

    def changed_paths_between(self, old: str, new: str) -> set[str]:
        """Paths touched between two revisions.

        Raises:
            VcsUnavailable: If git cannot be queried. Callers must then
                assume everything changed.
        """
        output = self._git(self.commands.changed_paths.format(
            old=shlex.quote(old), new=shlex.quote(new)
        ))
        paths = {line.strip() for line in output.splitlines() if line.strip()}
        logger.debug(
            f"{len(paths)} paths changed between {old[:10]} and {new[:10]}"
        )
        return paths

    def commit_message(self) -> str:
        """Full message of the checked-out commit.

        Raises:
            VcsUnavailable: If git cannot be queried
        """
        return self._git(self.commands.commit_message)
