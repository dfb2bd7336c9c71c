"""Full vs. incremental build decision."""

from __future__ import annotations

import re
import shutil
from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from sofaci.core.errors import CacheResetFailed
from sofaci.core.log import logger
from sofaci.state.cache import BuildCacheState
from sofaci.state.options import BuildOption

REASON_FORCED = "forced"
REASON_NO_CACHE = "no previous build detected"
REASON_NO_REVISION = "last build's commit not found"
REASON_BUILD_SCRIPT = "build script changed"

# A .cmake file anywhere below a directory named exactly "cmake"
BUILD_SCRIPT_PATTERN = re.compile(r"(?:^|/)cmake/.*\.cmake$")


class BuildMode(BaseModel):
    """Outcome of the decision: full (with a reason) or incremental."""

    model_config = ConfigDict(frozen=True)

    full: bool
    reason: str | None = None

    @classmethod
    def full_build(cls, reason: str) -> BuildMode:
        return cls(full=True, reason=reason)

    @classmethod
    def incremental(cls) -> BuildMode:
        return cls(full=False)

    def __str__(self) -> str:
        if self.full:
            return f"full build ({self.reason})"
        return "incremental build"


def is_build_script(path: str) -> bool:
    return BUILD_SCRIPT_PATTERN.search(path.replace("\\", "/")) is not None


class BuildModeDecider:
    """Decides whether a build directory can be reused."""

    def decide(
        self,
        options: Iterable[BuildOption],
        cache: BuildCacheState,
        changed_paths: set[str] | None,
    ) -> BuildMode:
        """Pick full or incremental; the first matching rule wins.

        1. force-full-build option
        2. no CMake cache in the build directory
        3. no record of the last built commit
        4. a CMake script changed since that commit. A changed_paths of
           None means git could not tell us, which counts as changed.
        5. otherwise incremental
        """
        if BuildOption.FORCE_FULL_BUILD in set(options):
            return BuildMode.full_build(REASON_FORCED)
        if not cache.has_cache:
            return BuildMode.full_build(REASON_NO_CACHE)
        if not cache.last_built_revision:
            return BuildMode.full_build(REASON_NO_REVISION)
        if changed_paths is None:
            return BuildMode.full_build(REASON_BUILD_SCRIPT)

        scripts = sorted(p for p in changed_paths if is_build_script(p))
        if scripts:
            logger.info(
                "Detected changes in CMake script files",
                scripts=scripts,
            )
            return BuildMode.full_build(REASON_BUILD_SCRIPT)

        return BuildMode.incremental()

    def apply(
        self,
        mode: BuildMode,
        cache: BuildCacheState,
        build_dir: Path,
        revision: str | None,
    ) -> None:
        """Carry out the decision on the build directory and cache.

        A full build wipes the directory and records `revision` as the
        last fully built commit. An incremental build only clears the
        full-build flag. The caller persists `cache` afterwards.

        Raises:
            CacheResetFailed: If the directory could not be wiped even
                after a retry. The cache is updated regardless: the
                configure step overwrites whatever is left.
        """
        if not mode.full:
            logger.info("Starting an incremental build")
            cache.is_full_build = False
            return

        logger.info(f"Starting a full build. ({mode.reason})")
        failure = None
        try:
            self._wipe(build_dir)
        except CacheResetFailed as e:
            failure = e

        build_dir.mkdir(parents=True, exist_ok=True)
        cache.has_cache = False
        cache.is_full_build = True
        cache.last_built_revision = revision

        if failure is not None:
            raise failure

    @staticmethod
    def _wipe(build_dir: Path, attempts: int = 2) -> None:
        if not build_dir.exists():
            return
        error = None
        for attempt in range(1, attempts + 1):
            try:
                shutil.rmtree(build_dir)
                return
            except OSError as e:
                error = e
                logger.warning(
                    f"Removing {build_dir} failed "
                    f"(attempt {attempt}/{attempts}): {e}"
                )
        raise CacheResetFailed(build_dir, str(error))
