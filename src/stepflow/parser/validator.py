"""
Static checks over a parsed flow.
"""

from __future__ import annotations

from typing import List, Set

from ..diagnostics import Diagnostic, create_diagnostic
from ..flows.conditions import is_supported_condition
from ..models import CallStatement, FlowModel, IfStatement, StepDefinition
from ..options import parse_options


def _check_steps(flow: FlowModel) -> List[Diagnostic]:
    diagnostics: List[Diagnostic] = []
    seen: Set[str] = set()
    for step in flow.steps:
        if step.name in seen:
            diagnostics.append(
                create_diagnostic("SF-107", message_kwargs={"step": step.name}, line=step.line_number)
            )
        seen.add(step.name)
        _, problems = parse_options(step.metadata)
        for problem in problems:
            diagnostics.append(
                create_diagnostic(
                    "SF-105",
                    message_kwargs={"step": step.name, "detail": problem},
                    line=step.line_number,
                )
            )
    return diagnostics


def _check_call(stmt: CallStatement, step: StepDefinition) -> List[Diagnostic]:
    diagnostics: List[Diagnostic] = []
    if step.is_static and stmt.args:
        diagnostics.append(
            create_diagnostic(
                "SF-104",
                message_kwargs={"step": step.name, "given": len(stmt.args)},
                line=stmt.line_number,
            )
        )
    elif len(stmt.args) > len(step.input_params):
        diagnostics.append(
            create_diagnostic(
                "SF-102",
                message_kwargs={"step": step.name, "expected": len(step.input_params), "given": len(stmt.args)},
                line=stmt.line_number,
                hint="Declare the extra parameters on the step or drop the arguments.",
            )
        )
    if len(stmt.returns) > len(step.output_params):
        diagnostics.append(
            create_diagnostic(
                "SF-103",
                message_kwargs={"step": step.name, "expected": len(step.output_params), "given": len(stmt.returns)},
                line=stmt.line_number,
            )
        )
    return diagnostics


def validate_flow(flow: FlowModel) -> List[Diagnostic]:
    """Return diagnostics for a parsed flow, in source order per category."""
    diagnostics = _check_steps(flow)

    for stmt in flow.iter_statements():
        if isinstance(stmt, CallStatement):
            step = flow.get_step(stmt.function)
            if step is None:
                diagnostics.append(
                    create_diagnostic(
                        "SF-101",
                        message_kwargs={"step": stmt.function},
                        line=stmt.line_number,
                        hint="Declare the step above main as 'alias = pkg.func(...) -> (...)'.",
                    )
                )
                continue
            diagnostics.extend(_check_call(stmt, step))
            _, problems = parse_options(stmt.metadata)
            for problem in problems:
                diagnostics.append(
                    create_diagnostic(
                        "SF-105",
                        message_kwargs={"step": stmt.function, "detail": problem},
                        line=stmt.line_number,
                    )
                )
        elif isinstance(stmt, IfStatement) and not is_supported_condition(stmt.condition):
            diagnostics.append(
                create_diagnostic(
                    "SF-106",
                    message_kwargs={"condition": stmt.condition},
                    line=stmt.line_number,
                    hint="Use '<var> != nil', '<var> == true', '<var> == false' or '<var> != true'.",
                )
            )
    return diagnostics


def has_errors(diagnostics: List[Diagnostic]) -> bool:
    return any(diag.is_error for diag in diagnostics)
