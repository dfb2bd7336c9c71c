"""Data model shared by the pipeline components."""

from sofaci.state.cache import BuildCacheState
from sofaci.state.counts import SceneCounts, TestCounts
from sofaci.state.options import BuildOption, parse_options
from sofaci.state.status import BuildStatus, StatusTracker
from sofaci.state.target import BuildTarget

__all__ = [
    "BuildCacheState",
    "BuildOption",
    "BuildStatus",
    "BuildTarget",
    "SceneCounts",
    "StatusTracker",
    "TestCounts",
    "parse_options",
]
