"""Build directory decisions and collaborator invocation."""

from sofaci.build.decider import BuildMode, BuildModeDecider
from sofaci.build.revision import RevisionTracker
from sofaci.build.steps import BuildSteps

__all__ = ["BuildMode", "BuildModeDecider", "BuildSteps", "RevisionTracker"]
