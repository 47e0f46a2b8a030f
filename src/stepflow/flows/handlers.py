"""
The step-handler boundary: the only place where a step's real work happens.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Protocol, Union

from ..errors import StepNotFoundError
from ..models import ParamInfo, StepDefinition
from ..options import ExecutionOptions
from .registry import CancelToken

log = logging.getLogger(__name__)


@dataclass
class StepRequest:
    flow_id: str
    step: StepDefinition
    inputs: Dict[str, Any]
    expected_outputs: List[ParamInfo]
    options: ExecutionOptions = field(default_factory=ExecutionOptions)
    description: str = ""
    attempt: int = 0
    cancel_token: Optional[CancelToken] = None

    @property
    def cancelled(self) -> bool:
        return self.cancel_token is not None and self.cancel_token.cancelled


@dataclass
class StepResult:
    success: bool = True
    outputs: Dict[str, Any] = field(default_factory=dict)
    error: str = ""
    logs: List[str] = field(default_factory=list)

    @classmethod
    def ok(cls, **outputs: Any) -> "StepResult":
        return cls(success=True, outputs=dict(outputs))

    @classmethod
    def failed(cls, error: str) -> "StepResult":
        return cls(success=False, error=error)


HandlerReturn = Union[StepResult, Awaitable[StepResult]]


class StepHandler(Protocol):
    def execute_step(self, request: StepRequest) -> HandlerReturn: ...


def coerce_result(raw: Any) -> StepResult:
    if isinstance(raw, StepResult):
        return raw
    if isinstance(raw, Mapping):
        return StepResult(success=True, outputs=dict(raw))
    if raw is None:
        return StepResult(success=True)
    raise TypeError(f"Step handlers must return StepResult or a mapping, got {type(raw).__name__}")


class FunctionHandler:
    """
    Adapt a plain callable (sync or async) taking a :class:`StepRequest`.

    The callable may return a :class:`StepResult` or a plain output mapping.
    """

    def __init__(self, fn: Callable[[StepRequest], Any]) -> None:
        self.fn = fn

    @property
    def is_async(self) -> bool:
        return inspect.iscoroutinefunction(self.fn)

    def execute_step(self, request: StepRequest) -> HandlerReturn:
        result = self.fn(request)
        if inspect.isawaitable(result):
            return self._await(result)
        return coerce_result(result)

    async def _await(self, pending: Awaitable[Any]) -> StepResult:
        return coerce_result(await pending)


def as_handler(handler: Union[StepHandler, Callable[[StepRequest], Any]]) -> StepHandler:
    if hasattr(handler, "execute_step"):
        return handler  # type: ignore[return-value]
    if callable(handler):
        return FunctionHandler(handler)
    raise TypeError(f"Not a step handler: {handler!r}")


class HandlerRegistry:
    """
    Routes a request to a handler by step alias, then by fully-qualified function.
    """

    def __init__(self, default: Optional[Union[StepHandler, Callable[[StepRequest], Any]]] = None) -> None:
        self._by_step: Dict[str, StepHandler] = {}
        self._by_function: Dict[str, StepHandler] = {}
        self._default = as_handler(default) if default is not None else None

    def register_step(self, step_name: str, handler: Union[StepHandler, Callable[[StepRequest], Any]]) -> None:
        self._by_step[step_name] = as_handler(handler)

    def register_function(self, function: str, handler: Union[StepHandler, Callable[[StepRequest], Any]]) -> None:
        self._by_function[function] = as_handler(handler)

    def resolve(self, step: StepDefinition) -> StepHandler:
        handler = self._by_step.get(step.name) or self._by_function.get(step.function) or self._default
        if handler is None:
            raise StepNotFoundError(f"No handler registered for step '{step.name}'", step_name=step.name)
        return handler

    def execute_step(self, request: StepRequest) -> HandlerReturn:
        handler = self.resolve(request.step)
        log.debug("Routing step %s to %s", request.step.name, type(handler).__name__)
        return handler.execute_step(request)


class FixtureHandler:
    """
    Returns canned outputs per step alias (or function name).

    A fixture entry is either an output mapping or ``{"outputs": {...},
    "success": bool, "error": str, "fail_times": int}``; ``fail_times`` makes
    the first N attempts fail, which is handy for exercising retries.
    """

    def __init__(self, fixtures: Mapping[str, Any], strict: bool = False) -> None:
        self.fixtures = dict(fixtures)
        self.strict = strict
        self.calls: List[StepRequest] = []

    def _fixture_for(self, step: StepDefinition) -> Any:
        if step.name in self.fixtures:
            return self.fixtures[step.name]
        if step.function in self.fixtures:
            return self.fixtures[step.function]
        if self.strict:
            raise KeyError(f"No fixture for step '{step.name}'")
        return {}

    def execute_step(self, request: StepRequest) -> StepResult:
        self.calls.append(request)
        fixture = self._fixture_for(request.step)
        if not isinstance(fixture, Mapping):
            return StepResult(success=False, error=f"Fixture for '{request.step.name}' must be an object")
        if "outputs" not in fixture and not {"success", "error", "fail_times"} & set(fixture):
            return StepResult(success=True, outputs=dict(fixture))
        if request.attempt < int(fixture.get("fail_times", 0)):
            return StepResult(success=False, error=fixture.get("error") or "fixture failure")
        success = bool(fixture.get("success", True))
        return StepResult(
            success=success,
            outputs=dict(fixture.get("outputs") or {}),
            error="" if success else str(fixture.get("error") or "fixture failure"),
        )
