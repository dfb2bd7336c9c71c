"""Graph workflow definitions."""

from pydantic_graph import Graph

from sofaci.core.log import logger
from sofaci.workflow.run import PipelineRun


def create_workflow() -> Graph:
    """Create the pipeline graph.

    Initialize → Configure → Compile → [RunUnitTests] →
        [RunSceneTests] → Report → Done

    Initialize may jump straight to Done (ignored commit), and
    Configure/Compile jump to Report when a mandatory step fails.
    """
    logger.debug("Building pipeline graph")

    # Node annotations are resolved against this namespace
    from sofaci.workflow.nodes.compile import Compile
    from sofaci.workflow.nodes.configure import Configure
    from sofaci.workflow.nodes.done import Done
    from sofaci.workflow.nodes.initialize import Initialize
    from sofaci.workflow.nodes.report import Report
    from sofaci.workflow.nodes.scene_tests import RunSceneTests
    from sofaci.workflow.nodes.unit_tests import RunUnitTests

    return Graph(
        nodes=(
            Initialize,
            Configure,
            Compile,
            RunUnitTests,
            RunSceneTests,
            Report,
            Done,
        ),
        state_type=PipelineRun,
    )


def create_post_build_workflow() -> Graph:
    """Single-node graph reporting the scheduler's job result."""
    from sofaci.workflow.nodes.scheduler_result import ReportSchedulerResult

    return Graph(nodes=(ReportSchedulerResult,), state_type=PipelineRun)
