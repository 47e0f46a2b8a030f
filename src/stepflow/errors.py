"""
Custom error types for the stepflow toolchain.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class StepflowError(Exception):
    """Base error with optional location metadata."""

    message: str
    line: Optional[int] = None
    column: Optional[int] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        location = ""
        if self.line is not None:
            location = f" (line {self.line}"
            if self.column is not None:
                location += f", column {self.column}"
            location += ")"
        return f"{self.message}{location}"


class ParseError(StepflowError):
    """Structural parse failure (missing or unterminated blocks)."""


@dataclass
class StepNotFoundError(StepflowError):
    """Raised when a call statement references an undeclared step."""

    step_name: str = ""


@dataclass
class StepExecutionError(StepflowError):
    """A single failed handler attempt (raised error or reported failure)."""

    step_name: str = ""
    attempt: int = 0


@dataclass
class RetriesExhaustedError(StepflowError):
    """Raised when a step keeps failing after all of its attempts."""

    step_name: str = ""
    attempts: int = 0
    last_error: BaseException | None = None


@dataclass
class FlowCancelledError(StepflowError):
    """Raised when cancellation is observed at a checkpoint."""

    flow_id: str = ""


@dataclass
class FlowAlreadyRunningError(StepflowError):
    """Raised when a flow id is started twice."""

    flow_id: str = ""


@dataclass
class FlowNotRunningError(StepflowError):
    """Raised when stopping a flow id that is not running."""

    flow_id: str = ""


@dataclass
class FlowNotFoundError(StepflowError):
    """Raised when looking up a flow id the executor never saw."""

    flow_id: str = ""
