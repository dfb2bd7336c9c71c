"""Tests for the build status lifecycle."""

import pytest

from sofaci.core.errors import InvalidTransition
from sofaci.state.status import BuildStatus, StatusTracker


def test_starts_pending():
    tracker = StatusTracker()

    assert tracker.current == BuildStatus.PENDING
    assert not tracker.finished


def test_forward_transitions():
    tracker = StatusTracker()
    tracker.advance(BuildStatus.BUILDING)
    tracker.advance(BuildStatus.SUCCESS)

    assert tracker.history == [
        BuildStatus.PENDING, BuildStatus.BUILDING, BuildStatus.SUCCESS
    ]
    assert tracker.finished


def test_pending_can_end_directly():
    """Ignored commits never start building."""
    tracker = StatusTracker()
    tracker.advance(BuildStatus.IGNORED)

    assert tracker.current == BuildStatus.IGNORED


def test_reentering_building_is_noop():
    tracker = StatusTracker()
    tracker.advance(BuildStatus.BUILDING)
    tracker.advance(BuildStatus.BUILDING)

    assert tracker.history == [BuildStatus.PENDING, BuildStatus.BUILDING]


def test_cannot_go_back_to_pending():
    tracker = StatusTracker()
    tracker.advance(BuildStatus.BUILDING)

    with pytest.raises(InvalidTransition):
        tracker.advance(BuildStatus.PENDING)


@pytest.mark.parametrize("terminal", [
    BuildStatus.SUCCESS,
    BuildStatus.FAILURE,
    BuildStatus.ERROR,
    BuildStatus.ABORTED,
    BuildStatus.IGNORED,
])
def test_terminal_status_is_final(terminal):
    """Nothing leaves a terminal status, not even the same one."""
    tracker = StatusTracker()
    tracker.advance(BuildStatus.BUILDING)
    tracker.advance(terminal)

    for status in BuildStatus:
        with pytest.raises(InvalidTransition):
            tracker.advance(status)

    assert tracker.history.count(terminal) == 1
    assert tracker.history[-1] == terminal


def test_history_never_revisits_terminal():
    tracker = StatusTracker()
    tracker.advance(BuildStatus.BUILDING)
    tracker.advance(BuildStatus.FAILURE)
    with pytest.raises(InvalidTransition):
        tracker.advance(BuildStatus.SUCCESS)

    terminals = [s for s in tracker.history if s.is_terminal]
    assert terminals == [BuildStatus.FAILURE]


def test_exit_codes():
    assert BuildStatus.SUCCESS.exit_code == 0
    assert BuildStatus.IGNORED.exit_code == 0
    assert BuildStatus.FAILURE.exit_code == 1
    assert BuildStatus.ERROR.exit_code == 1
    assert BuildStatus.ABORTED.exit_code == 1
