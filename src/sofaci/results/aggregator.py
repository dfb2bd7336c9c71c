"""Test, scene and compiler warning aggregation.

Every function here is read-only and never raises for missing or
malformed input: a category that cannot be read comes back as None
(Missing), which callers keep distinct from zero.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from enum import Enum
from pathlib import Path

from sofaci.core.log import logger
from sofaci.state.counts import SceneCounts, TestCounts


class WarningStyle(str, Enum):
    """Compiler diagnostic format of the build log."""

    WINDOWS = "windows"
    POSIX_LIKE = "posix"

    @classmethod
    def for_platform(cls, platform: str, override: str = "auto") -> WarningStyle:
        if override and override != "auto":
            return cls(override.lower())
        if platform.lower().startswith("win"):
            return cls.WINDOWS
        return cls.POSIX_LIKE


WARNING_PATTERNS = {
    # foo.cpp(12) : warning C4244: ...
    WarningStyle.WINDOWS: re.compile(r" : warning [A-Z]+[0-9]+:"),
    # foo.cpp:12:5: warning: ...
    WarningStyle.POSIX_LIKE: re.compile(r"^[^:]+:[0-9]+:[0-9]+: warning:"),
}

# Scene report files, one scene per line
SCENE_REPORT_FILES = {
    "total": "scenes.txt",
    "successes": "successes.txt",
    "errors": "errors.txt",
    "crashes": "crashes.txt",
}


def _int_attr(element: ET.Element, name: str) -> int:
    value = element.get(name)
    if value is None:
        return 0
    return max(int(value), 0)


class ResultAggregator:
    """Turns collaborator reports into TestCounts/SceneCounts/warnings."""

    def aggregate_tests(self, report_dir: Path) -> TestCounts:
        """Sum JUnit/GoogleTest XML reports found in report_dir.

        A file that cannot be parsed is skipped; when none can be
        read every category is Missing.
        """
        if not report_dir.is_dir():
            logger.warning(f"No unit test reports in {report_dir}")
            return TestCounts()

        totals = {"suites": 0, "total": 0, "disabled": 0,
                  "failures": 0, "errors": 0}
        parsed = 0
        for report in sorted(report_dir.rglob("*.xml")):
            try:
                root = ET.parse(report).getroot()
                suites = (
                    [root] if root.tag == "testsuite"
                    else root.findall("testsuite")
                )
                counts = {
                    "suites": len(suites),
                    "total": sum(_int_attr(s, "tests") for s in suites),
                    "disabled": sum(
                        _int_attr(s, "disabled") + _int_attr(s, "skipped")
                        for s in suites
                    ),
                    "failures": sum(_int_attr(s, "failures") for s in suites),
                    "errors": sum(_int_attr(s, "errors") for s in suites),
                }
            except (ET.ParseError, ValueError, OSError) as e:
                logger.warning(f"Skipping unreadable test report {report}: {e}")
                continue

            for key, value in counts.items():
                totals[key] += value
            parsed += 1

        if not parsed:
            logger.warning(f"No readable unit test report in {report_dir}")
            return TestCounts()
        return TestCounts(**totals)

    def aggregate_scenes(self, report_dir: Path) -> SceneCounts:
        """Count entries in the scene report files.

        Each category whose file is absent is Missing on its own.
        """
        counts = {}
        for category, filename in SCENE_REPORT_FILES.items():
            path = report_dir / filename
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError:
                counts[category] = None
                continue
            counts[category] = sum(1 for line in text.splitlines() if line.strip())

        if all(v is None for v in counts.values()):
            logger.warning(f"No scene test reports in {report_dir}")
        return SceneCounts(**counts)

    def aggregate_warnings(self, build_log: Path, style: WarningStyle) -> int | None:
        """Number of distinct compiler warnings in a build log.

        Lines are compared after trimming surrounding whitespace, so a
        warning printed twice (parallel jobs, headers included from
        several units) counts once. Returns None when the log is
        missing.
        """
        try:
            text = build_log.read_text(encoding="utf-8", errors="replace")
        except OSError:
            logger.warning(f"No build log at {build_log}, warnings not counted")
            return None

        pattern = WARNING_PATTERNS[style]
        warnings = {
            stripped for stripped in (line.strip() for line in text.splitlines())
            if pattern.search(stripped)
        }
        logger.info(f"Counted {len(warnings)} compiler warnings.")
        return len(warnings)
