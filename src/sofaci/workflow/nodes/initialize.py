"""Initialize node - ignore check, cleanup, start notification."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from sofaci.core.errors import VcsUnavailable
from sofaci.core.log import logger
from sofaci.notify.dispatcher import Event
from sofaci.state.status import BuildStatus
from sofaci.workflow.run import PipelineRun, PipelineStage


@dataclass
class Initialize(BaseNode[PipelineRun]):
    """Decide whether the commit is built at all and announce it."""

    async def run(
        self, ctx: GraphRunContext[PipelineRun]
    ) -> Configure | Done:
        run = ctx.state
        run.enter(PipelineStage.INIT)

        try:
            message = run.tracker.commit_message()
        except VcsUnavailable as e:
            logger.warning(f"Cannot read commit message: {e}")
            message = ""

        marker = run.config.pipeline.ignore_marker
        if marker and marker in message:
            logger.warning(
                f"{marker} detected in commit message, build aborted."
            )
            run.status.advance(BuildStatus.IGNORED)
            from sofaci.workflow.nodes.done import Done
            return Done()

        try:
            run.steps.clean_previous_outputs()
        except OSError as e:
            logger.warning(f"Could not remove previous outputs: {e}")

        try:
            run.revision = run.tracker.current_revision()
        except VcsUnavailable as e:
            logger.warning(f"Current revision unknown: {e}")
        run.dispatcher.bind_revision(run.revision)

        run.status.advance(BuildStatus.BUILDING)
        run.dispatcher.broadcast(
            Event.PIPELINE_START, BuildStatus.BUILDING, "Build started."
        )

        from sofaci.workflow.nodes.configure import Configure
        return Configure()
