"""Tests for build option parsing."""

import pytest

from sofaci.core.errors import UsageError
from sofaci.state.options import BuildOption, format_options, parse_options


def test_empty_options():
    assert parse_options("") == frozenset()
    assert parse_options(None) == frozenset()
    assert parse_options([]) == frozenset()


def test_space_and_comma_separated():
    """CI jobs pass options space or comma separated."""
    expected = {BuildOption.RUN_UNIT_TESTS, BuildOption.FORCE_FULL_BUILD}

    assert parse_options("run-unit-tests force-full-build") == expected
    assert parse_options("run-unit-tests,force-full-build") == expected
    assert parse_options(" run-unit-tests ,  force-full-build ") == expected


def test_list_of_words():
    options = parse_options(["run-scene-tests", "build-all-plugins"])

    assert options == {
        BuildOption.RUN_SCENE_TESTS, BuildOption.BUILD_ALL_PLUGINS
    }


def test_duplicates_collapse():
    options = parse_options("run-unit-tests run-unit-tests")

    assert options == {BuildOption.RUN_UNIT_TESTS}


def test_unknown_option_is_usage_error():
    with pytest.raises(UsageError, match="unknown build option 'fast'"):
        parse_options("run-unit-tests fast")


def test_format_is_sorted():
    options = parse_options("run-unit-tests build-all-plugins")

    assert format_options(options) == "build-all-plugins run-unit-tests"
    assert format_options([]) == ""
