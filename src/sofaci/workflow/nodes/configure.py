"""Configure node - full/incremental decision and CMake run."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from sofaci.core.errors import CacheResetFailed, VcsUnavailable
from sofaci.core.log import logger
from sofaci.state.cache import BuildCacheState
from sofaci.workflow.run import PipelineRun, PipelineStage


@dataclass
class Configure(BaseNode[PipelineRun]):
    """Prepare the build directory and run the configure step."""

    async def run(
        self, ctx: GraphRunContext[PipelineRun]
    ) -> Compile | Report:
        run = ctx.state
        run.enter(PipelineStage.CONFIGURING)

        try:
            self._prepare(run)
            with logger.span("configure", mode=str(run.mode)):
                run.steps.configure(run.mode)
        except Exception as e:
            run.fail(e, "configure")
            from sofaci.workflow.nodes.report import Report
            return Report()

        from sofaci.workflow.nodes.compile import Compile
        return Compile()

    def _prepare(self, run: PipelineRun) -> None:
        """Pick the build mode and bring the build directory in line."""
        build_dir = run.target.build_dir
        cache = BuildCacheState.load(build_dir)
        changed = self._changed_paths(run, cache)

        run.mode = run.decider.decide(run.target.options, cache, changed)
        try:
            run.decider.apply(run.mode, cache, build_dir, run.revision)
        except CacheResetFailed as e:
            logger.warning(f"{e}; configuring over the old directory")
        cache.save(build_dir)
        run.cache = cache

    @staticmethod
    def _changed_paths(run: PipelineRun, cache: BuildCacheState) -> set[str] | None:
        """Paths changed since the last full build; None when unknown."""
        last = run.tracker.last_built_revision(cache)
        if not last:
            return set()
        if not run.revision:
            return None
        try:
            return run.tracker.changed_paths_between(last, run.revision)
        except VcsUnavailable as e:
            logger.warning(f"{e}; assuming build scripts changed")
            return None
