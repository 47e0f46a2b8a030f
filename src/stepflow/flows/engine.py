"""
Flow executor: drives a parsed flow's ``main`` statements in source order.
"""

from __future__ import annotations

import asyncio
import copy
import inspect
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set, Union

from ..config import StepflowConfig, load_config
from ..errors import (
    FlowCancelledError,
    FlowNotFoundError,
    ParseError,
    RetriesExhaustedError,
    StepExecutionError,
    StepNotFoundError,
)
from ..models import (
    Argument,
    CallStatement,
    FlowModel,
    IfStatement,
    ReturnStatement,
    Statement,
    StatementStatus,
    StepDefinition,
    VariableInfo,
    VarStatement,
)
from ..observability.logging_utils import redact_event, redact_metadata
from ..observability.metrics import MetricsRegistry, default_metrics
from ..options import ExecutionOptions
from ..values import coerce_value, parse_literal
from .conditions import evaluate_condition
from .errors import ReturnSignal, StepTimeoutError
from .handlers import StepHandler, StepRequest, StepResult, as_handler, coerce_result
from .hooks import FlowHooks
from .registry import CancelToken, FlowRegistry
from .retries import build_retry_policy
from .templates import parse_var_assignment, render_template

log = logging.getLogger(__name__)


@dataclass
class FlowRunResult:
    flow_id: str
    flow: FlowModel
    returned_early: bool = False
    duration_seconds: float = 0.0

    @property
    def status(self) -> str:
        return "returned" if self.returned_early else "completed"


class FlowExecutor:
    """
    Runs flows against a step handler.

    Each flow runs on its own task with its own variable table; the executor
    only shares the registry of running flow ids and their last checkpoints.
    """

    def __init__(
        self,
        handler: Union[StepHandler, Callable[[StepRequest], Any]],
        hooks: Optional[FlowHooks] = None,
        config: Optional[StepflowConfig] = None,
        metrics: Optional[MetricsRegistry] = None,
    ) -> None:
        self.handler = as_handler(handler)
        self.hooks = hooks or FlowHooks()
        self.config = config or load_config()
        self.metrics = metrics or default_metrics
        self.registry = FlowRegistry()
        self._snapshots: "OrderedDict[str, FlowModel]" = OrderedDict()
        self._snapshots_lock = threading.Lock()
        self._tasks: Set[asyncio.Task] = set()

    # Control plane ---------------------------------------------------------

    def run(self, flow: FlowModel, cancel_token: Optional[CancelToken] = None) -> FlowRunResult:
        """Blocking wrapper around :meth:`start`."""
        return asyncio.run(self.start(flow, cancel_token=cancel_token))

    async def start(self, flow: FlowModel, cancel_token: Optional[CancelToken] = None) -> FlowRunResult:
        token = self._begin(flow, cancel_token)
        return await self._drive(flow, token)

    def submit(self, flow: FlowModel, cancel_token: Optional[CancelToken] = None) -> "asyncio.Task[FlowRunResult]":
        """
        Schedule a flow on the running loop and return its task.

        Registration happens before this returns, so a duplicate id fails here.
        """

        token = self._begin(flow, cancel_token)
        task = asyncio.get_running_loop().create_task(self._drive(flow, token))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def stop(self, flow_id: str) -> None:
        self.registry.cancel(flow_id)
        log.info("Stop requested for flow %s", flow_id)

    def get(self, flow_id: str) -> FlowModel:
        with self._snapshots_lock:
            snapshot = self._snapshots.get(flow_id)
        if snapshot is None:
            raise FlowNotFoundError(f"Flow '{flow_id}' is unknown", flow_id=flow_id)
        return copy.deepcopy(snapshot)

    def running(self) -> List[str]:
        return self.registry.running()

    def known(self) -> List[str]:
        with self._snapshots_lock:
            return sorted(self._snapshots)

    def _task_done(self, task: "asyncio.Task[FlowRunResult]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.warning("Background flow ended with %s: %s", type(exc).__name__, exc)

    # Driver loop -------------------------------------------------------------

    def _begin(self, flow: FlowModel, cancel_token: Optional[CancelToken]) -> CancelToken:
        if not flow.success:
            raise ParseError(f"Flow '{flow.flow_id}' failed to parse: {flow.error}")
        token = CancelToken(parent=cancel_token)
        self.registry.register(flow.flow_id, token)
        self._checkpoint(flow)
        return token

    async def _drive(self, flow: FlowModel, token: CancelToken) -> FlowRunResult:
        started = time.monotonic()
        outcome = "failed"
        log.info("Flow %s started (%s statements)", flow.flow_id, len(flow.main_statements))
        flow.add_global_log("info", "Flow started")
        try:
            await self._run_statements(flow, flow.main_statements, token)
        except ReturnSignal:
            flow.add_global_log("info", "Flow returned early")
            self._checkpoint(flow)
            await self._emit("on_return", flow)
            outcome = "returned"
            log.info("Flow %s returned early", flow.flow_id)
            return FlowRunResult(flow.flow_id, flow, True, time.monotonic() - started)
        except FlowCancelledError as exc:
            outcome = "cancelled"
            flow.add_global_log("warn", str(exc))
            self._checkpoint(flow)
            log.info("Flow %s cancelled", flow.flow_id)
            raise
        except Exception as exc:
            flow.add_global_log("error", str(exc))
            self._checkpoint(flow)
            log.warning("Flow %s aborted: %s", flow.flow_id, exc)
            raise
        else:
            flow.add_global_log("info", "Flow completed")
            self._checkpoint(flow)
            await self._emit("on_exit", flow)
            outcome = "completed"
            log.info("Flow %s completed", flow.flow_id)
            return FlowRunResult(flow.flow_id, flow, False, time.monotonic() - started)
        finally:
            self.registry.unregister(flow.flow_id)
            self._evict_finished()
            self.metrics.record_flow(outcome, time.monotonic() - started)

    async def _run_statements(self, flow: FlowModel, statements: List[Statement], token: CancelToken) -> None:
        for stmt in statements:
            if token.cancelled:
                stmt.end_execution(StatementStatus.CANCELLED)
                await self._update(flow)
                raise self._cancelled(flow, stmt)

            stmt.start_execution()
            try:
                await self._dispatch(flow, stmt, token)
            except ReturnSignal:
                if not stmt.finished:
                    stmt.end_execution(StatementStatus.COMPLETED)
                await self._update(flow)
                raise
            except FlowCancelledError:
                stmt.end_execution(StatementStatus.CANCELLED)
                await self._update(flow)
                raise
            except Exception:
                if not stmt.finished:
                    stmt.end_execution(StatementStatus.FAILED)
                await self._update(flow)
                raise
            if not stmt.finished:
                stmt.end_execution(StatementStatus.COMPLETED)
            await self._update(flow)

    async def _dispatch(self, flow: FlowModel, stmt: Statement, token: CancelToken) -> None:
        if isinstance(stmt, CallStatement):
            await self._execute_call(flow, stmt, token)
        elif isinstance(stmt, IfStatement):
            if evaluate_condition(stmt.condition, flow.variables):
                await self._run_statements(flow, stmt.children, token)
            else:
                log.debug("Condition '%s' on line %s is false", stmt.condition, stmt.line_number)
        elif isinstance(stmt, VarStatement):
            self._execute_var(flow, stmt)
        elif isinstance(stmt, ReturnStatement):
            raise ReturnSignal(stmt.line_number)
        else:
            log.debug("Ignoring statement of kind %s on line %s", stmt.kind, stmt.line_number)

    async def _update(self, flow: FlowModel) -> None:
        self._checkpoint(flow)
        await self._emit("on_update", flow)

    async def _emit(self, name: str, flow: FlowModel) -> None:
        try:
            ok = await self.hooks.emit(name, flow)
        except Exception:
            self.metrics.record_hook_failure(name)
            raise
        if not ok:
            self.metrics.record_hook_failure(name)

    def _checkpoint(self, flow: FlowModel) -> None:
        snapshot = copy.deepcopy(flow)
        with self._snapshots_lock:
            self._snapshots[flow.flow_id] = snapshot
            self._snapshots.move_to_end(flow.flow_id)

    def _evict_finished(self) -> None:
        """Keep only the newest ``snapshot_retention`` finished flows."""
        with self._snapshots_lock:
            finished = [flow_id for flow_id in self._snapshots if not self.registry.is_running(flow_id)]
            for flow_id in finished[: max(len(finished) - self.config.snapshot_retention, 0)]:
                del self._snapshots[flow_id]

    def _cancelled(self, flow: FlowModel, stmt: Statement) -> FlowCancelledError:
        return FlowCancelledError(
            f"Flow '{flow.flow_id}' was cancelled",
            line=stmt.line_number or None,
            flow_id=flow.flow_id,
        )

    # Statements ---------------------------------------------------------------

    def _execute_var(self, flow: FlowModel, stmt: VarStatement) -> None:
        parsed = parse_var_assignment(stmt.content)
        if parsed is None:
            log.warning("Cannot parse assignment on line %s: %s", stmt.line_number, stmt.content)
            return
        name, raw = parsed
        flow.variables[name] = VariableInfo(
            name=name,
            type="string",
            value=render_template(raw, flow.variables),
            source="assignment",
            line_num=stmt.line_number,
        )

    async def _execute_call(self, flow: FlowModel, stmt: CallStatement, token: CancelToken) -> None:
        step = flow.get_step(stmt.function)
        if step is None:
            raise StepNotFoundError(
                f"Step '{stmt.function}' is not declared",
                line=stmt.line_number,
                step_name=stmt.function,
            )

        options = self._options_for(stmt, step)
        err_continue = options.err_continue is True
        policy = build_retry_policy(options, self.config)
        inputs = self._resolve_inputs(flow, stmt, step)
        level = logging.INFO if options.debug else logging.DEBUG
        last_error: Optional[BaseException] = None

        for attempt in range(policy.attempts):
            if token.cancelled:
                raise self._cancelled(flow, stmt)
            stmt.retry_count = attempt
            request = StepRequest(
                flow_id=flow.flow_id,
                step=step,
                inputs=dict(inputs),
                expected_outputs=list(step.output_params),
                options=options,
                description=stmt.desc or step.desc,
                attempt=attempt,
                cancel_token=token,
            )
            log.log(level, "Calling step %s (attempt %s/%s) with %s",
                    step.name, attempt + 1, policy.attempts, redact_metadata(inputs, self.config.redact_logs))
            started = time.monotonic()
            try:
                result = await self._invoke(request, options)
            except StepNotFoundError:
                raise
            except Exception as exc:
                last_error = exc
                message = str(exc) or type(exc).__name__
            else:
                if token.cancelled:
                    raise self._cancelled(flow, stmt)
                for line in result.logs:
                    step.add_log("info", str(line))
                if result.success:
                    self.metrics.record_step(step.name, time.monotonic() - started, retried=attempt > 0)
                    log.log(level, "Step %s finished: %s", step.name,
                            redact_event({"step": step.name, "outputs": result.outputs}, self.config.redact_logs))
                    self._bind_outputs(flow, stmt, step, result)
                    return
                message = result.error or "step reported failure"
                last_error = StepExecutionError(message, line=stmt.line_number, step_name=step.name, attempt=attempt)

            if token.cancelled:
                raise self._cancelled(flow, stmt)
            self.metrics.record_step(step.name, time.monotonic() - started, failed=True, retried=attempt > 0)
            step.add_log("error", f"Attempt {attempt + 1} failed: {message}")

            if err_continue:
                log.warning("Step %s failed on line %s, continuing: %s", step.name, stmt.line_number, message)
                stmt.end_execution(StatementStatus.FAILED_CONTINUE)
                return
            if policy.has_attempts_left(attempt):
                delay = policy.delay_for(attempt)
                log.info("Step %s failed (attempt %s), retrying in %.2fs: %s",
                         step.name, attempt + 1, delay, message)
                await asyncio.sleep(delay)
                continue

            stmt.end_execution(StatementStatus.FAILED)
            raise RetriesExhaustedError(
                f"Step '{step.name}' failed after {attempt + 1} attempt(s): {message}",
                line=stmt.line_number,
                step_name=step.name,
                attempts=attempt + 1,
                last_error=last_error,
            ) from last_error

    def _options_for(self, stmt: CallStatement, step: StepDefinition) -> ExecutionOptions:
        """Call-site metadata wins over step-level metadata."""
        if not step.metadata:
            return stmt.options
        merged: Dict[str, Any] = dict(step.metadata)
        merged.update(stmt.metadata)
        options = ExecutionOptions.from_metadata(merged)
        if stmt.options.err_continue is not None:
            options.err_continue = stmt.options.err_continue
        return options

    async def _invoke(self, request: StepRequest, options: ExecutionOptions) -> StepResult:
        handler = self.handler

        async def call() -> StepResult:
            if inspect.iscoroutinefunction(handler.execute_step) or getattr(handler, "is_async", False):
                raw = handler.execute_step(request)
            else:
                raw = await asyncio.to_thread(handler.execute_step, request)
            if inspect.isawaitable(raw):
                raw = await raw
            return coerce_result(raw)

        timeout = options.timeout_seconds if self.config.enforce_timeouts else None
        if not timeout:
            return await call()
        try:
            return await asyncio.wait_for(call(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise StepTimeoutError(request.step.name, timeout) from exc

    def _resolve_inputs(self, flow: FlowModel, stmt: CallStatement, step: StepDefinition) -> Dict[str, Any]:
        """Bind call-site arguments to the step's formal input names, by position."""
        if step.is_static:
            return {}
        inputs: Dict[str, Any] = {}
        for index, arg in enumerate(stmt.args):
            if index >= len(step.input_params):
                log.debug("Dropping extra argument %r for step %s", arg.value, step.name)
                break
            inputs[step.input_params[index].name] = self._resolve_argument(flow, arg)
        return inputs

    def _resolve_argument(self, flow: FlowModel, arg: Argument) -> Any:
        if arg.is_input:
            key = arg.input_key
            if key in flow.input_vars:
                return flow.input_vars[key]
            return arg.value
        if arg.is_literal:
            return parse_literal(arg.value)
        info = flow.variables.get(arg.value)
        if info is not None:
            return info.value
        return arg.value

    def _bind_outputs(self, flow: FlowModel, stmt: CallStatement, step: StepDefinition, result: StepResult) -> None:
        for index, name in enumerate(stmt.returns):
            if index >= len(step.output_params):
                log.debug("Step %s has no output for %r", step.name, name)
                break
            if name == "_":
                continue
            formal = step.output_params[index]
            if formal.name not in result.outputs:
                continue
            flow.variables[name] = VariableInfo(
                name=name,
                type=formal.type,
                value=coerce_value(result.outputs[formal.name]),
                source=step.name,
                line_num=stmt.line_number,
            )
