"""Exceptions raised by the pipeline.

All of them derive from SofaCIError. The pipeline controller decides
which are fatal: usage errors stop the run before anything is
reported, collaborator failures are reported to both sinks and end
the run, the rest are logged and the run carries on.
"""

from __future__ import annotations


class SofaCIError(Exception):
    """Base class for all sofa-ci exceptions.

    Attributes:
        message: The error message.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UsageError(SofaCIError):
    """Invalid invocation arguments (unknown build option, bad path)."""


class VcsUnavailable(SofaCIError):
    """The version-control collaborator could not be queried.

    Attributes:
        command: The git command that failed.
    """

    def __init__(self, command: str, detail: str = "") -> None:
        self.command = command
        message = f"git query failed: {command}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class CacheResetFailed(SofaCIError):
    """The build directory could not be wiped for a full build.

    Attributes:
        build_dir: The directory that could not be removed.
    """

    def __init__(self, build_dir, detail: str = "") -> None:
        self.build_dir = build_dir
        super().__init__(
            f"could not remove build directory {build_dir}: {detail}"
        )


class CollaboratorFailure(SofaCIError):
    """A configure, compile or test step did not succeed.

    Attributes:
        step: Name of the failing step.
        expected: True for an ordinary build failure (non-zero exit),
            False for an internal error (crash, timeout, missing tool).
        log_file: Step output, when one was written.
    """

    def __init__(
        self,
        step: str,
        detail: str,
        expected: bool = True,
        log_file=None,
    ) -> None:
        self.step = step
        self.expected = expected
        self.log_file = log_file
        super().__init__(f"{step} failed: {detail}")


class NotificationSinkUnreachable(SofaCIError):
    """A notification could not be delivered to a sink.

    Attributes:
        sink: Name of the sink.
    """

    def __init__(self, sink: str, detail: str) -> None:
        self.sink = sink
        super().__init__(f"{sink} unreachable: {detail}")


class InvalidTransition(SofaCIError):
    """A build status change that would leave a terminal state or go
    backwards."""
