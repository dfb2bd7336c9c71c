"""Runtime state of one pipeline run, shared by the graph nodes."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field

from sofaci.build.decider import BuildMode
from sofaci.core.base import BaseState
from sofaci.core.config import Config
from sofaci.core.errors import CollaboratorFailure
from sofaci.core.log import logger
from sofaci.state.cache import BuildCacheState
from sofaci.state.counts import SceneCounts, TestCounts
from sofaci.state.status import BuildStatus, StatusTracker
from sofaci.state.target import BuildTarget


class PipelineStage(str, Enum):
    INIT = "init"
    CONFIGURING = "configuring"
    COMPILING = "compiling"
    TESTING = "testing"
    SCENES_TESTING = "scenes-testing"
    REPORTING = "reporting"
    DONE = "done"


class PipelineRun(BaseState):
    """Everything a pipeline run reads and writes.

    Collaborators are injected so tests can replace them; the rest is
    filled in as the graph advances.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    target: BuildTarget
    config: Config
    tracker: Any = Field(description="RevisionTracker")
    decider: Any = Field(description="BuildModeDecider")
    steps: Any = Field(description="BuildSteps")
    aggregator: Any = Field(description="ResultAggregator")
    dispatcher: Any = Field(description="NotificationDispatcher")

    status: Any = Field(default_factory=StatusTracker)
    stages: list[PipelineStage] = Field(default_factory=list)
    revision: str | None = None
    cache: BuildCacheState | None = None
    mode: BuildMode | None = None
    warnings: int | None = None
    test_counts: TestCounts | None = None
    scene_counts: SceneCounts | None = None
    failure: CollaboratorFailure | None = None

    def enter(self, stage: PipelineStage) -> None:
        logger.debug(f"Pipeline stage: {stage.value}")
        self.stages.append(stage)

    def fail(self, error: Exception, step: str) -> None:
        """Record the failure that ends the run.

        Anything but a CollaboratorFailure is an internal error of the
        step and ends the run with status Error.
        """
        if isinstance(error, CollaboratorFailure):
            failure = error
        else:
            logger.error(f"Internal error during {step}", _exc_info=error)
            failure = CollaboratorFailure(
                step, f"{type(error).__name__}: {error}", expected=False
            )
        logger.error(str(failure), expected=failure.expected,
                     log_file=str(failure.log_file or ""))
        self.failure = failure

    @property
    def exit_code(self) -> int:
        return self.status.current.exit_code

    def final_status(self) -> BuildStatus:
        if self.failure is None:
            return BuildStatus.SUCCESS
        if self.failure.expected:
            return BuildStatus.FAILURE
        return BuildStatus.ERROR
