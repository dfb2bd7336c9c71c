"""Persisted facts about a build directory."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

CMAKE_CACHE_FILE = "CMakeCache.txt"
LAST_COMMIT_FILE = "last-commit-built.txt"
FULL_BUILD_MARKER = "full-build"


class BuildCacheState(BaseModel):
    """What a previous pipeline run left in the build directory.

    Read once at pipeline start with load(), updated at the
    full/incremental decision point, written back once with save().
    """

    has_cache: bool = False
    last_built_revision: str | None = None
    is_full_build: bool = False

    @classmethod
    def load(cls, build_dir: Path) -> BuildCacheState:
        revision = None
        last_commit = build_dir / LAST_COMMIT_FILE
        if last_commit.is_file():
            revision = last_commit.read_text(encoding="utf-8").strip() or None

        return cls(
            has_cache=(build_dir / CMAKE_CACHE_FILE).is_file(),
            last_built_revision=revision,
            is_full_build=(build_dir / FULL_BUILD_MARKER).exists(),
        )

    def save(self, build_dir: Path) -> None:
        """Write the revision record and full-build marker."""
        build_dir.mkdir(parents=True, exist_ok=True)

        last_commit = build_dir / LAST_COMMIT_FILE
        if self.last_built_revision:
            last_commit.write_text(
                self.last_built_revision + "\n", encoding="utf-8"
            )
        else:
            last_commit.unlink(missing_ok=True)

        marker = build_dir / FULL_BUILD_MARKER
        if self.is_full_build:
            marker.touch()
        else:
            marker.unlink(missing_ok=True)
