"""Post-build command - report the scheduler's verdict on the job."""

from __future__ import annotations

from pydantic import Field

from sofaci.command.run import USAGE_EXIT_CODE, TargetArgs
from sofaci.core.errors import UsageError
from sofaci.core.log import logger
from sofaci.state.cache import BuildCacheState


class PostBuildCommand(TargetArgs):
    """Send final notifications for a job the CI scheduler ended.

    Reads the scheduler's build-result file in the build directory and
    reports FAILURE, ERROR and ABORTED results to both sinks.
    """

    commit: str | None = Field(
        default=None,
        description="Commit to report on (default: last commit built)",
    )

    async def run_workflow(self, state: "State") -> int:
        from sofaci.workflow.pipeline import Pipeline

        try:
            target = self.target()
        except UsageError as e:
            logger.error(f"Usage error: {e}")
            return USAGE_EXIT_CODE

        revision = (
            self.commit
            or BuildCacheState.load(target.build_dir).last_built_revision
        )
        return await Pipeline(target, state.config).report_scheduler_result(
            revision
        )
