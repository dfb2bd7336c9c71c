"""Compile node - build and count warnings."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from sofaci.core.log import logger
from sofaci.notify.dispatcher import Event
from sofaci.results.aggregator import WarningStyle
from sofaci.state.options import BuildOption
from sofaci.state.status import BuildStatus
from sofaci.workflow.run import PipelineRun, PipelineStage


@dataclass
class Compile(BaseNode[PipelineRun]):
    """Compile, then route to the selected test stages."""

    async def run(
        self, ctx: GraphRunContext[PipelineRun]
    ) -> RunUnitTests | RunSceneTests | Report:
        run = ctx.state
        run.enter(PipelineStage.COMPILING)

        try:
            with logger.span("compile"):
                run.steps.compile()
            # Recounted after every compile, full or incremental
            style = WarningStyle.for_platform(
                run.target.platform, run.config.pipeline.warning_style
            )
            run.warnings = run.aggregator.aggregate_warnings(
                run.steps.make_log, style
            )
        except Exception as e:
            run.fail(e, "compile")
            from sofaci.workflow.nodes.report import Report
            return Report()

        if run.warnings is not None:
            run.dispatcher.update_dashboard(warnings=run.warnings)

        run.dispatcher.broadcast(
            Event.COMPILE_RESULT, BuildStatus.SUCCESS, "Build succeeded."
        )

        if run.target.has(BuildOption.RUN_UNIT_TESTS):
            from sofaci.workflow.nodes.unit_tests import RunUnitTests
            return RunUnitTests()
        if run.target.has(BuildOption.RUN_SCENE_TESTS):
            from sofaci.workflow.nodes.scene_tests import RunSceneTests
            return RunSceneTests()
        from sofaci.workflow.nodes.report import Report
        return Report()
