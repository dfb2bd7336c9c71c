"""Run command - the build pipeline for one build directory."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import CliPositionalArg

from sofaci.core.errors import UsageError
from sofaci.core.log import logger
from sofaci.state.options import BuildOption, parse_options
from sofaci.state.target import BuildTarget

# Exit code for invalid invocations, before anything is reported
USAGE_EXIT_CODE = 2


class TargetArgs(BaseModel):
    """Positional build identity shared by the commands."""

    build_dir: CliPositionalArg[Path] = Field(
        description="Build directory (one per configuration)"
    )
    src_dir: CliPositionalArg[Path] = Field(description="Source checkout")
    platform: CliPositionalArg[str] = Field(
        description="e.g. ubuntu, macos, windows7"
    )
    compiler: CliPositionalArg[str] = Field(
        description="e.g. gcc-9, clang-10, VS-2015"
    )
    architecture: CliPositionalArg[str] = Field(description="x86 or amd64")
    build_type: CliPositionalArg[str] = Field(description="debug or release")
    options: str = Field(
        default="",
        description=(
            "Build options, space or comma separated: "
            + ", ".join(o.value for o in BuildOption)
        ),
    )
    job_url: str | None = Field(
        default=None, alias="job-url",
        description="URL of the CI job, linked from both sinks",
    )

    def target(self) -> BuildTarget:
        """Validated BuildTarget.

        Raises:
            UsageError: On an unknown option or a missing source dir
        """
        if not self.src_dir.is_dir():
            raise UsageError(f"source directory not found: {self.src_dir}")
        build_type = self.build_type.lower()
        if build_type not in ("debug", "release"):
            raise UsageError(f"unknown build type: {self.build_type}")

        return BuildTarget(
            build_dir=self.build_dir.expanduser().absolute(),
            src_dir=self.src_dir.expanduser().absolute(),
            platform=self.platform,
            compiler=self.compiler,
            architecture=self.architecture,
            build_type=build_type,
            options=parse_options(self.options),
            job_url=self.job_url,
        )


class RunCommand(TargetArgs):
    """Configure, compile and test one build configuration, reporting
    progress to the commit status API and the dashboard.

    Decides between a full and an incremental build from the build
    directory's cache and the changes since the last full build.
    """

    async def run_workflow(self, state: "State") -> int:
        """Run the pipeline.

        Returns:
            Exit code (0=success or ignored, 1=failure, 2=usage error)
        """
        from sofaci.workflow.pipeline import Pipeline

        try:
            target = self.target()
        except UsageError as e:
            logger.error(f"Usage error: {e}")
            return USAGE_EXIT_CODE

        return await Pipeline(target, state.config).run()
