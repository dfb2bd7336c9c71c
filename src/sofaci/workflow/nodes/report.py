"""Report node - terminal status and final notification."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from sofaci.core.log import logger
from sofaci.notify.dispatcher import Event, final_message
from sofaci.state.status import BuildStatus
from sofaci.workflow.run import PipelineRun, PipelineStage

FAILURE_MESSAGES = {
    BuildStatus.FAILURE: "Build failed.",
    BuildStatus.ERROR: "Unexpected error, see log for details.",
}


@dataclass
class Report(BaseNode[PipelineRun]):
    """Settle the terminal status and report it to both sinks."""

    async def run(self, ctx: GraphRunContext[PipelineRun]) -> Done:
        run = ctx.state
        run.enter(PipelineStage.REPORTING)

        status = run.final_status()
        if status is BuildStatus.SUCCESS:
            message = final_message(run.test_counts, run.scene_counts)
        else:
            message = FAILURE_MESSAGES[status]

        run.status.advance(status)
        run.dispatcher.broadcast(Event.FINAL_STATUS, status, message)

        if status is BuildStatus.SUCCESS and run.mode and run.mode.full:
            try:
                archived = run.steps.archive_make_log()
            except OSError as e:
                logger.warning(f"Could not keep full build log: {e}")
            else:
                if archived:
                    logger.info(f"Kept full build log as {archived.name}")

        from sofaci.workflow.nodes.done import Done
        return Done()
