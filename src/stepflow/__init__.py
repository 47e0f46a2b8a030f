"""
stepflow: a small DSL for orchestrating external steps.
"""

from .version import __version__, MODEL_VERSION  # noqa: F401
from .errors import (  # noqa: F401
    FlowAlreadyRunningError,
    FlowCancelledError,
    FlowNotFoundError,
    FlowNotRunningError,
    ParseError,
    RetriesExhaustedError,
    StepflowError,
    StepNotFoundError,
)
from .models import FlowModel, StatementStatus  # noqa: F401
from .parser import parse_flow, validate_flow  # noqa: F401
from .flows import (  # noqa: F401
    CancelToken,
    FixtureHandler,
    FlowExecutor,
    FlowHooks,
    FlowRunResult,
    HandlerRegistry,
    StepRequest,
    StepResult,
)

__all__ = [
    "parse_flow",
    "validate_flow",
    "FlowModel",
    "FlowExecutor",
    "FlowHooks",
    "FlowRunResult",
    "CancelToken",
    "FixtureHandler",
    "HandlerRegistry",
    "StepRequest",
    "StepResult",
    "StatementStatus",
    "StepflowError",
    "ParseError",
    "StepNotFoundError",
    "RetriesExhaustedError",
    "FlowCancelledError",
    "FlowAlreadyRunningError",
    "FlowNotRunningError",
    "FlowNotFoundError",
    "__version__",
    "MODEL_VERSION",
]
