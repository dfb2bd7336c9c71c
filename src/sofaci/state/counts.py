"""Aggregated test and scene counts.

A category is None when its report was absent or unreadable. That is
not the same as a count of zero and is never reported as one.
"""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, NonNegativeInt


class _Counts(BaseModel):
    model_config = ConfigDict(frozen=True)

    field_prefix: ClassVar[str] = ""

    @property
    def missing(self) -> bool:
        """True when no category could be read at all."""
        return all(v is None for v in self.model_dump().values())

    def dashboard_fields(self) -> dict[str, str]:
        """Present categories as dashboard fields; Missing ones omitted."""
        return {
            f"{self.field_prefix}_{name}": str(value)
            for name, value in self.model_dump().items()
            if value is not None
        }


class TestCounts(_Counts):
    """Unit test results: suites, total, disabled, failures, errors."""

    __test__ = False  # not a pytest class

    field_prefix: ClassVar[str] = "tests"

    suites: NonNegativeInt | None = None
    total: NonNegativeInt | None = None
    disabled: NonNegativeInt | None = None
    failures: NonNegativeInt | None = None
    errors: NonNegativeInt | None = None

    @property
    def problems(self) -> int:
        return (self.failures or 0) + (self.errors or 0)

    def summary(self) -> str:
        if self.missing:
            return "Unit tests: no report found"
        return (
            f"Unit tests: {self.total or 0} run, "
            f"{self.problems} problems, {self.disabled or 0} disabled"
        )


class SceneCounts(_Counts):
    """Scene test results: total, successes, errors, crashes."""

    field_prefix: ClassVar[str] = "scenes"

    total: NonNegativeInt | None = None
    successes: NonNegativeInt | None = None
    errors: NonNegativeInt | None = None
    crashes: NonNegativeInt | None = None

    @property
    def problems(self) -> int:
        return (self.errors or 0) + (self.crashes or 0)

    def summary(self) -> str:
        if self.missing:
            return "Scene tests: no report found"
        return (
            f"Scene tests: {self.total or 0} run, "
            f"{self.problems} problems"
        )
