"""
Flow execution: the driver loop, step handlers and the running-flow registry.
"""

from .conditions import evaluate_condition, is_supported_condition
from .engine import FlowExecutor, FlowRunResult
from .handlers import FixtureHandler, FunctionHandler, HandlerRegistry, StepHandler, StepRequest, StepResult
from .hooks import FlowHooks
from .registry import CancelToken, FlowRegistry
from .retries import RetryPolicy
from .templates import render_template

__all__ = [
    "CancelToken",
    "FixtureHandler",
    "FlowExecutor",
    "FlowHooks",
    "FlowRegistry",
    "FlowRunResult",
    "FunctionHandler",
    "HandlerRegistry",
    "RetryPolicy",
    "StepHandler",
    "StepRequest",
    "StepResult",
    "evaluate_condition",
    "is_supported_condition",
    "render_template",
]
