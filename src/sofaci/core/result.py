"""Result type for collaborator steps."""

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel


class StepResult(BaseModel):
    """Outcome of one configure/compile/test invocation."""

    step: str
    success: bool
    log_file: Path | None
    returncode: int
    timestamp: datetime
