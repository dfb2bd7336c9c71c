"""Pipeline controller: wires collaborators and runs the graph."""

from __future__ import annotations

from sofaci.build.decider import BuildModeDecider
from sofaci.build.revision import RevisionTracker
from sofaci.build.steps import BuildSteps
from sofaci.core.config import Config
from sofaci.core.log import logger
from sofaci.notify import create_dispatcher
from sofaci.results.aggregator import ResultAggregator
from sofaci.state.target import BuildTarget
from sofaci.workflow.run import PipelineRun


class Pipeline:
    """Runs the build pipeline for one build target.

    Collaborators default to the real git/CMake/HTTP implementations
    built from the configuration; any of them can be passed in instead.
    """

    def __init__(
        self,
        target: BuildTarget,
        config: Config,
        tracker=None,
        decider=None,
        steps=None,
        aggregator=None,
        dispatcher=None,
    ):
        self.target = target
        self.config = config
        self.tracker = tracker or RevisionTracker(
            target.src_dir, config.commands.git
        )
        self.decider = decider or BuildModeDecider()
        self.steps = steps or BuildSteps(
            target, config.commands.build, config.pipeline
        )
        self.aggregator = aggregator or ResultAggregator()
        self.dispatcher = dispatcher or create_dispatcher(target, config)
        self.last_run: PipelineRun | None = None

    def new_run(self) -> PipelineRun:
        return PipelineRun(
            target=self.target,
            config=self.config,
            tracker=self.tracker,
            decider=self.decider,
            steps=self.steps,
            aggregator=self.aggregator,
            dispatcher=self.dispatcher,
        )

    async def _iterate(self, graph, start, run: PipelineRun) -> int:
        self.last_run = run
        async with graph.iter(start, state=run) as graph_run:
            async for node in graph_run:
                if hasattr(node, 'data'):
                    return node.data

        # Every path ends in an End node
        logger.error("Pipeline graph ended without a result")
        return 1

    async def run(self) -> int:
        """Run the pipeline.

        Returns:
            Process exit code (0 success or ignored, 1 otherwise)
        """
        from sofaci.workflow.graph import create_workflow
        from sofaci.workflow.nodes.initialize import Initialize

        logger.info(
            f"Pipeline for {self.target.name}",
            build_dir=str(self.target.build_dir),
            options=self.target.describe_options(),
        )
        with logger.span("pipeline", target=self.target.name):
            return await self._iterate(
                create_workflow(), Initialize(), self.new_run()
            )

    async def report_scheduler_result(self, revision: str | None) -> int:
        """Report the CI scheduler's verdict after the job ended."""
        from sofaci.workflow.graph import create_post_build_workflow
        from sofaci.workflow.nodes.scheduler_result import (
            ReportSchedulerResult,
        )

        run = self.new_run()
        run.revision = revision
        with logger.span("post-build", target=self.target.name):
            return await self._iterate(
                create_post_build_workflow(), ReportSchedulerResult(), run
            )
