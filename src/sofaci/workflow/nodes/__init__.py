"""Workflow nodes for the pipeline state machine."""

from sofaci.workflow.nodes.compile import Compile
from sofaci.workflow.nodes.configure import Configure
from sofaci.workflow.nodes.done import Done
from sofaci.workflow.nodes.initialize import Initialize
from sofaci.workflow.nodes.report import Report
from sofaci.workflow.nodes.scene_tests import RunSceneTests
from sofaci.workflow.nodes.scheduler_result import ReportSchedulerResult
from sofaci.workflow.nodes.unit_tests import RunUnitTests

__all__ = [
    "Initialize",
    "Configure",
    "Compile",
    "RunUnitTests",
    "RunSceneTests",
    "Report",
    "Done",
    "ReportSchedulerResult",
]
