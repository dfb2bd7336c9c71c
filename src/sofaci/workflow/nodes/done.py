"""Done node - ends the graph with the process exit code."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from sofaci.core.log import logger
from sofaci.workflow.run import PipelineRun, PipelineStage


@dataclass
class Done(BaseNode[PipelineRun, None, int]):
    async def run(self, ctx: GraphRunContext[PipelineRun]) -> End[int]:
        run = ctx.state
        run.enter(PipelineStage.DONE)
        logger.info(
            f"Pipeline finished: {run.status.current.value}",
            stages=[s.value for s in run.stages],
        )
        return End(run.exit_code)
