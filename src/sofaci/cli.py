#!/usr/bin/env python3
"""sofa-ci CLI - build pipeline decisions and notifications."""

import asyncio

from pydantic import Field
from pydantic_settings import CliApp, CliSubCommand, get_subcommand

from sofaci.command.post_build import PostBuildCommand
from sofaci.command.run import RunCommand
from sofaci.core.config import State
from sofaci.core.log import logger


class CliState(State):
    """Continuous-integration build pipeline for SOFA.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.pipeline.ignore_marker value)
    2. sofaci.yaml in the current directory, plus --include files
    3. .env file for secrets
    4. Environment variables
       (SOFACI_CONFIG__STATUS_API__TOKEN=value)
    """

    run: CliSubCommand[RunCommand]
    post_build: CliSubCommand[PostBuildCommand] = Field(alias="post-build")

    def cli_cmd(self):
        """Dispatch to the active subcommand, or show help."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            import sys
            CliApp.run(CliState, cli_args=['--help'])
            sys.exit(2)

        # Closes the log file sinks on exit
        with logger:
            exit_code = asyncio.run(subcommand.run_workflow(self))
            raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
