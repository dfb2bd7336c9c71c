"""Identity of the build configuration a pipeline run works on."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from sofaci.state.options import BuildOption, format_options


class BuildTarget(BaseModel):
    """Immutable description of one build directory's configuration.

    One build directory corresponds to exactly one
    (platform, compiler, architecture, build type) combination.
    """

    model_config = ConfigDict(frozen=True)

    build_dir: Path
    src_dir: Path
    platform: str = Field(description="e.g. ubuntu, macos, windows7")
    compiler: str = Field(description="e.g. gcc-9, clang-10, VS-2015")
    architecture: str = Field(description="x86 or amd64")
    build_type: str = Field(description="debug or release")
    options: frozenset[BuildOption] = frozenset()
    job_url: str | None = Field(
        default=None, description="Link to the CI job, sent to both sinks"
    )

    @property
    def name(self) -> str:
        """Short configuration name, e.g. ubuntu_gcc-9_amd64_release."""
        return (
            f"{self.platform}_{self.compiler}_"
            f"{self.architecture}_{self.build_type}"
        )

    @property
    def is_windows(self) -> bool:
        return self.platform.lower().startswith("win")

    def has(self, option: BuildOption) -> bool:
        return option in self.options

    def describe_options(self) -> str:
        return format_options(self.options)
