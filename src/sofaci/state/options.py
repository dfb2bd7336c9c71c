"""Build options selected for a pipeline run."""

from __future__ import annotations

import re
from collections.abc import Iterable
from enum import Enum

from sofaci.core.errors import UsageError


class BuildOption(str, Enum):
    """Named flags a CI job can switch on."""

    FORCE_FULL_BUILD = "force-full-build"
    RUN_UNIT_TESTS = "run-unit-tests"
    RUN_SCENE_TESTS = "run-scene-tests"
    BUILD_ALL_PLUGINS = "build-all-plugins"


def parse_options(words: str | Iterable[str] | None) -> frozenset[BuildOption]:
    """Parse option words into an immutable set.

    Accepts a single string (space or comma separated, as CI jobs pass
    them) or an iterable of such strings. Order and duplicates do not
    matter.

    Raises:
        UsageError: If a word is not a known option
    """
    if words is None:
        return frozenset()
    if isinstance(words, str):
        words = [words]

    options = set()
    for chunk in words:
        for word in re.split(r"[\s,]+", chunk.strip()):
            if not word:
                continue
            try:
                options.add(BuildOption(word))
            except ValueError:
                known = ", ".join(o.value for o in BuildOption)
                raise UsageError(
                    f"unknown build option '{word}' (known: {known})"
                ) from None
    return frozenset(options)


def format_options(options: Iterable[BuildOption]) -> str:
    """Stable, human-readable rendering of an option set."""
    return " ".join(sorted(o.value for o in options))
