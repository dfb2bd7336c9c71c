"""Configure, compile and test collaborators.

Each step is a shell command template from the configuration, run in
the build directory with its output saved to a log file there.
"""

from __future__ import annotations

import shlex
import shutil
from datetime import datetime
from pathlib import Path

from sofaci.build.decider import BuildMode
from sofaci.core.config import BuildCommands, PipelineConfig
from sofaci.core.errors import CollaboratorFailure
from sofaci.core.log import logger
from sofaci.core.result import StepResult
from sofaci.core.runner import Runner
from sofaci.state.options import BuildOption
from sofaci.state.target import BuildTarget


def compiler_pair(compiler: str) -> tuple[str, str]:
    """C and C++ driver names for a compiler id like gcc-9 or clang-10."""
    if compiler.startswith("gcc"):
        return "gcc", "g++"
    if compiler.startswith("clang"):
        return "clang", "clang++"
    logger.warning(f"Unknown compiler: {compiler}, trying a lucky guess")
    return compiler, f"{compiler}++"


def detect_generator(windows: bool) -> str:
    if shutil.which("ninja"):
        return "Ninja"
    if windows:
        return "NMake Makefiles"
    return "Unix Makefiles"


class BuildSteps:
    """Invokes the external build tools for one build target."""

    def __init__(
        self,
        target: BuildTarget,
        commands: BuildCommands | None = None,
        settings: PipelineConfig | None = None,
        runner: Runner | None = None,
    ):
        self.target = target
        self.commands = commands or BuildCommands()
        self.settings = settings or PipelineConfig()
        self.runner = runner or Runner()

    @property
    def make_log(self) -> Path:
        return self.target.build_dir / self.settings.make_log

    @property
    def unit_test_reports(self) -> Path:
        return self.target.build_dir / self.settings.unit_test_reports

    @property
    def scene_test_reports(self) -> Path:
        return self.target.build_dir / self.settings.scene_test_reports

    def cmake_options(self) -> list[str]:
        target = self.target
        options = [f"-DCMAKE_BUILD_TYPE={target.build_type.capitalize()}"]
        if not target.is_windows:
            c_compiler, cxx_compiler = compiler_pair(target.compiler)
            options += [
                f"-DCMAKE_C_COMPILER={c_compiler}",
                f"-DCMAKE_CXX_COMPILER={cxx_compiler}",
            ]
        options += self.settings.cmake_options
        if target.has(BuildOption.BUILD_ALL_PLUGINS):
            options += self.settings.all_plugins_cmake_options
        return options

    def _placeholders(self, reports_dir: Path | None = None) -> dict[str, str]:
        target = self.target
        cmake_options = " ".join(shlex.quote(o) for o in self.cmake_options())
        if self.settings.extra_cmake_options:
            cmake_options += " " + self.settings.extra_cmake_options
        return {
            "build_dir": shlex.quote(str(target.build_dir)),
            "src_dir": shlex.quote(str(target.src_dir)),
            "compiler": target.compiler,
            "architecture": target.architecture,
            "build_type": target.build_type.capitalize(),
            "generator": detect_generator(target.is_windows),
            "cmake_options": cmake_options,
            "reports_dir": shlex.quote(str(reports_dir or "")),
        }

    def _execute(
        self, step: str, template: str, log_file: Path,
        reports_dir: Path | None = None,
    ) -> StepResult:
        """Run one step command.

        Raises:
            CollaboratorFailure: Unexpected, if the command could not be
                built or started (bad template, unwritable build dir)
        """
        timestamp = datetime.now()
        try:
            command = template.format(**self._placeholders(reports_dir))
            self.target.build_dir.mkdir(parents=True, exist_ok=True)
            if reports_dir:
                reports_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Running {step}", command=command)
            result = self.runner.execute(
                command,
                cwd=self.target.build_dir,
                timeout=self.settings.command_timeout,
                log_file=log_file,
                log_level="spew",
                check=False,
            )
        except Exception as e:
            raise CollaboratorFailure(
                step, f"{type(e).__name__}: {e}", expected=False
            ) from e

        return StepResult(
            step=step,
            success=(result.exited == 0),
            log_file=log_file,
            returncode=result.exited,
            timestamp=timestamp,
        )

    @staticmethod
    def _require(result: StepResult) -> StepResult:
        """Turn an unsuccessful mandatory step into CollaboratorFailure."""
        if result.returncode == -1:
            raise CollaboratorFailure(
                result.step, "timed out", expected=False,
                log_file=result.log_file,
            )
        if not result.success:
            raise CollaboratorFailure(
                result.step, f"exit code {result.returncode}",
                log_file=result.log_file,
            )
        return result

    def configure(self, mode: BuildMode) -> StepResult:
        """Run CMake; a full build generates, an incremental one
        re-runs in place.

        Raises:
            CollaboratorFailure: If configuring fails
        """
        template = (
            self.commands.configure_full if mode.full
            else self.commands.configure_incremental
        )
        return self._require(self._execute(
            "configure", template,
            self.target.build_dir / "cmake-output.txt",
        ))

    def compile(self) -> StepResult:
        """Raises:
            CollaboratorFailure: If compilation fails
        """
        return self._require(self._execute(
            "compile", self.commands.compile, self.make_log
        ))

    def run_unit_tests(self) -> StepResult:
        """Run the unit tests; failing tests are not a step failure."""
        return self._execute(
            "unit tests", self.commands.unit_tests,
            self.unit_test_reports.parent / "unit-tests-output.txt",
            reports_dir=self.unit_test_reports,
        )

    def run_scene_tests(self) -> StepResult:
        """Run the scene tests; failing scenes are not a step failure."""
        return self._execute(
            "scene tests", self.commands.scene_tests,
            self.scene_test_reports.parent / "scene-tests-output.txt",
            reports_dir=self.scene_test_reports,
        )

    def clean_previous_outputs(self) -> None:
        """Remove logs and reports a previous run left behind."""
        build_dir = self.target.build_dir
        if not build_dir.is_dir():
            return
        for old_log in build_dir.glob("make-output*.txt"):
            old_log.unlink(missing_ok=True)
        for reports in (self.unit_test_reports, self.scene_test_reports):
            shutil.rmtree(reports, ignore_errors=True)

    def archive_make_log(self) -> Path | None:
        """Keep a full build's compile log as make-output-<compiler>.txt."""
        if not self.make_log.is_file():
            return None
        archived = self.make_log.with_name(
            f"{self.make_log.stem}-{self.target.compiler}{self.make_log.suffix}"
        )
        self.make_log.replace(archived)
        return archived
