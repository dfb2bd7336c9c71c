"""Pytest configuration and fixtures for sofa-ci tests."""

import sys
import tempfile
from pathlib import Path

import pytest

from sofaci.core.log import ConsoleSink, setup_logger
from sofaci.state.options import BuildOption
from sofaci.state.target import BuildTarget


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Console-only debug logging; nothing is sent anywhere."""
    test_log_root = Path(tempfile.gettempdir()) / "sofaci-tests"
    setup_logger(
        log_root=test_log_root,
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture
def make_target(tmp_path):
    """Factory for BuildTargets rooted in tmp_path."""
    src_dir = tmp_path / "src"
    src_dir.mkdir()

    def _make(*options: BuildOption, platform="ubuntu", compiler="gcc-9",
              build_type="release", job_url=None):
        return BuildTarget(
            build_dir=tmp_path / "build",
            src_dir=src_dir,
            platform=platform,
            compiler=compiler,
            architecture="amd64",
            build_type=build_type,
            options=frozenset(options),
            job_url=job_url,
        )

    return _make


@pytest.fixture
def test_config():
    """Configuration with package defaults, without CLI parsing.

    sys.argv is replaced so pydantic-settings does not see pytest's
    own arguments.
    """
    from sofaci.core.config import State

    old_argv = sys.argv
    sys.argv = ['sofaci']
    try:
        state = State()
        return state.config
    finally:
        sys.argv = old_argv
