"""Shell command execution for git and build steps, on top of invoke."""

import contextlib
import os
import platform
from pathlib import Path

from invoke import Context, Result
from invoke.exceptions import CommandTimedOut

from sofaci.core.log import logger


class Runner(Context):
    """invoke.Context with an execute() suited to long CI steps.

    A step's output goes to its log file while the command runs, so a
    build that hangs, times out or crashes still leaves the output
    produced so far.
    """

    def kill(self) -> None:
        """Kill the running subprocess.

        invoke's kill() sends signal.SIGKILL, which Windows builders do
        not have. os.kill() there passes the number straight to
        TerminateProcess(), so send 9 instead.
        """
        if platform.system() == "Windows":
            pid = self.pid if self.using_pty else self.process.pid
            with contextlib.suppress(ProcessLookupError):
                os.kill(pid, 9)
            return

        super().kill()

    def execute(
        self,
        command: str,
        cwd: Path | None = None,
        timeout: int | None = None,
        stdin: str | None = None,
        log_file: Path | None = None,
        log_level: str | None = None,
        check: bool = True,
        env: dict[str, str] | None = None,
    ) -> Result:
        """Run a shell command.

        Args:
            command: Shell command line
            cwd: Directory to run in
            timeout: Seconds before the command is killed
            stdin: Text fed to the command's stdin
            log_file: File receiving stdout and stderr as they arrive;
                truncated first
            log_level: Level at which captured lines are echoed to
                our own log once the command ends
            check: Raise on a non-zero exit code
            env: Variables added on top of os.environ

        Returns:
            invoke.Result; exited is -1 when the command timed out

        Raises:
            invoke.UnexpectedExit: If check=True and the command
                exits non-zero
        """
        kwargs = {
            "warn": not check,
            "in_stream": stdin if stdin else False,
        }
        if timeout:
            kwargs["timeout"] = timeout
        if env:
            kwargs["env"] = env

        logger.debug("Executing command", command=command,
                     cwd=str(cwd) if cwd else None)

        with contextlib.ExitStack() as stack:
            if log_file:
                log_file.parent.mkdir(parents=True, exist_ok=True)
                log = stack.enter_context(
                    open(log_file, "w", encoding="utf-8", errors="replace")
                )
                # Not hidden: invoke mirrors the output into the log
                kwargs.update(hide=False, out_stream=log, err_stream=log)
            else:
                kwargs["hide"] = True

            if cwd:
                stack.enter_context(self.cd(str(cwd)))

            try:
                result = self.run(command, **kwargs)
            except CommandTimedOut as e:
                logger.warning(f"Command timed out after {timeout}s",
                               command=command)
                result = e.result
                result.exited = -1

        if log_level:
            for line in (result.stdout + result.stderr).splitlines():
                # Compiler output is full of braces; keep them literal
                text = line.rstrip().replace("{", "{{").replace("}", "}}")
                logger.log(log_level, text)

        return result
