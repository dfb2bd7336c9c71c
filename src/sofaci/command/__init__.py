"""CLI command modules for sofa-ci."""

from sofaci.command.post_build import PostBuildCommand
from sofaci.command.run import RunCommand

__all__ = ["PostBuildCommand", "RunCommand"]
