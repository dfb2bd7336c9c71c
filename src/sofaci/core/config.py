"""Application state and configuration."""

from __future__ import annotations

from pathlib import Path

import platformdirs
from pydantic import Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from sofaci.core.base import BaseConfig
from sofaci.core.log import Logger
from sofaci.core.yaml_settings import YamlWithIncludesSettingsSource

# ============================================================
# CONFIG MODELS (loaded from YAML/env/CLI)
# ============================================================


class StatusApiConfig(BaseConfig):
    """Commit status reporting on the source-hosting service."""

    enabled: bool = Field(
        default=False, description="Post commit statuses"
    )
    api_url: str = Field(
        default="https://api.github.com",
        description="Base URL of the status API",
    )
    repository: str = Field(
        default="sofa-framework/sofa",
        description="owner/name of the repository receiving statuses",
    )
    token: str | None = Field(
        default=None,
        description="API token (or SOFACI_CONFIG__STATUS_API__TOKEN)",
    )
    context: str = Field(
        default="[ci] {name}",
        description=(
            "Status context; {name}, {platform}, {compiler}, "
            "{architecture}, {build_type} are substituted"
        ),
    )
    timeout: float = Field(
        default=30.0, description="HTTP timeout in seconds"
    )


class DashboardConfig(BaseConfig):
    """Build dashboard receiving key=value form posts."""

    enabled: bool = Field(
        default=False, description="Post to the dashboard"
    )
    url: str = Field(
        default="https://www.sofa-framework.org/dash/input.php",
        description="Endpoint accepting the form posts",
    )
    timeout: float = Field(
        default=30.0, description="HTTP timeout in seconds"
    )


class GitCommands(BaseConfig):
    """Git command templates run in the source directory."""

    current_revision: str = "git rev-parse HEAD"
    changed_paths: str = "git diff --name-only {old} {new}"
    commit_message: str = "git log --pretty=%B -1"


class BuildCommands(BaseConfig):
    """Configure/compile/test command templates.

    Placeholders: {build_dir}, {src_dir}, {compiler}, {architecture},
    {build_type}, {generator}, {cmake_options}, {reports_dir}.
    Paths are shell-quoted before substitution.
    """

    configure_full: str = 'cmake -G "{generator}" {cmake_options} {src_dir}'
    configure_incremental: str = "cmake {cmake_options} ."
    compile: str = "cmake --build . --config {build_type}"
    unit_tests: str = (
        "ctest --output-on-failure "
        "--output-junit {reports_dir}/unit-tests.xml"
    )
    scene_tests: str = (
        "{src_dir}/scripts/ci/scene-tests.sh run {build_dir} {src_dir}"
    )


class Commands(BaseConfig):
    git: GitCommands = Field(default_factory=GitCommands)
    build: BuildCommands = Field(default_factory=BuildCommands)


class PipelineConfig(BaseConfig):
    """Pipeline behaviour knobs."""

    ignore_marker: str = Field(
        default="[ci-ignore]",
        description="Commit message marker that skips the build",
    )
    warning_style: str = Field(
        default="auto",
        description=(
            "Compiler warning format: 'windows', 'posix', or 'auto' "
            "(from the platform name)"
        ),
    )
    make_log: str = Field(
        default="make-output.txt",
        description="Compile output file, relative to the build dir",
    )
    unit_test_reports: str = Field(
        default="unit-tests/reports",
        description="Unit test report directory, relative to the build dir",
    )
    scene_test_reports: str = Field(
        default="scene-tests/reports",
        description="Scene test report directory, relative to the build dir",
    )
    cmake_options: list[str] = Field(
        default_factory=lambda: ["-DCMAKE_COLOR_MAKEFILE=OFF"],
        description="Options passed to every configure",
    )
    all_plugins_cmake_options: list[str] = Field(
        default_factory=list,
        description="Extra options when build-all-plugins is selected",
    )
    extra_cmake_options: str = Field(
        default="",
        description="Free-form options appended last (CI_CMAKE_OPTIONS)",
    )
    command_timeout: int | None = Field(
        default=None,
        description="Timeout for each step in seconds; none by default",
    )


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI."""

    logger: Logger = Field(
        default=None,
        description="Logger configuration and runtime instance",
    )
    status_api: StatusApiConfig = Field(
        default_factory=StatusApiConfig,
        description="Commit status sink",
    )
    dashboard: DashboardConfig = Field(
        default_factory=DashboardConfig,
        description="Dashboard sink",
    )
    pipeline: PipelineConfig = Field(
        default_factory=PipelineConfig,
        description="Pipeline behaviour",
    )
    commands: Commands = Field(
        default_factory=Commands,
        description="Command templates for git and build steps",
    )
    log_root: Path = Field(
        default_factory=lambda: Path(platformdirs.user_state_dir("sofaci")),
        description="Root directory for sofa-ci's own log files",
    )
    run_name: str = Field(
        default="pipeline",
        description="Name used for the log directory of this run",
    )

    @model_validator(mode='after')
    def _setup_logger(self) -> 'Config':
        """Install the global logger once configuration is loaded."""
        from sofaci.core.log import setup_logger

        if self.logger is None:
            self.logger = Logger()

        self.logger = setup_logger(
            log_root=self.log_root,
            run_name=self.run_name,
            level=self.logger.level,
            console=self.logger.console,
            file=self.logger.file,
        )
        return self

    def close(self):
        """Close config and the global logger singleton."""
        from sofaci.core.log import logger
        logger.close()
        super().close()


# ============================================================
# STATE (config + CLI entry)
# ============================================================


class State(BaseSettings):
    """Complete application state handed to commands.

    Configuration comes from, highest priority first: constructor
    arguments, YAML files (see YamlWithIncludesSettingsSource), .env,
    SOFACI_-prefixed environment variables.
    """

    config: Config = Field(
        default_factory=Config,
        description="Application configuration (from YAML/env/CLI)",
    )
    include: list[str] | None = Field(
        default=None,
        description="Additional YAML files to merge (--include FILE)",
    )

    model_config = SettingsConfigDict(
        yaml_file="sofaci.yaml",
        env_file=".env",
        env_prefix="SOFACI_",
        env_nested_delimiter="__",
        cli_parse_args=True,
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        arbitrary_types_allowed=True,
        extra='ignore',
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )


__all__ = ["Config", "State"]
