"""Post-build node - report the CI scheduler's verdict on the job."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from sofaci.core.log import logger
from sofaci.notify.dispatcher import Event
from sofaci.state.status import BuildStatus
from sofaci.workflow.run import PipelineRun, PipelineStage

BUILD_RESULT_FILE = "build-result"

SCHEDULER_RESULTS = {
    "FAILURE": (BuildStatus.FAILURE, "Build failed."),
    "ERROR": (BuildStatus.ERROR, "Unexpected error, see log for details."),
    "ABORTED": (BuildStatus.ABORTED, "Build canceled."),
}


@dataclass
class ReportSchedulerResult(BaseNode[PipelineRun, None, int]):
    """Map the `build-result` marker to final notifications.

    Only failing verdicts are reported; a successful job already sent
    its own final status.
    """

    async def run(self, ctx: GraphRunContext[PipelineRun]) -> End[int]:
        run = ctx.state
        run.enter(PipelineStage.REPORTING)

        marker = run.target.build_dir / BUILD_RESULT_FILE
        if not marker.is_file():
            logger.info(f"No {BUILD_RESULT_FILE} file, nothing to report")
            return End(0)

        result = marker.read_text(encoding="utf-8").strip().upper()
        if result not in SCHEDULER_RESULTS:
            logger.info(f"Scheduler result {result or '(empty)'}, nothing to report")
            return End(0)

        status, message = SCHEDULER_RESULTS[result]
        run.dispatcher.bind_revision(run.revision)
        run.status.advance(status)
        run.dispatcher.broadcast(Event.FINAL_STATUS, status, message)

        run.enter(PipelineStage.DONE)
        return End(run.exit_code)
