"""
Flow parser: turns source text into a :class:`FlowModel`.
"""

from __future__ import annotations

import logging
from typing import List, Optional
from uuid import uuid4

from ..errors import ParseError
from ..flows.templates import parse_var_assignment
from ..lexer import Lexer, SourceLine, description_above, find_block_end
from ..models import CallStatement, FlowModel, VarStatement, VariableInfo
from ..values import type_name
from .literals import is_input_declaration, parse_input_block
from .statements import StatementParser
from .steps import looks_like_step_declaration, parse_step_declaration

__all__ = ["Parser", "parse_flow", "generate_flow_id"]

log = logging.getLogger(__name__)

MAIN_PREFIX = "func main()"


def generate_flow_id() -> str:
    return f"flow_{uuid4().hex[:16]}"


class Parser:
    def __init__(self, source: str, flow_id: Optional[str] = None) -> None:
        self.source = source
        self.flow_id = flow_id or generate_flow_id()
        self.lines: List[SourceLine] = Lexer(source).lines()

    def parse(self) -> FlowModel:
        """
        Parse the whole source. Structural failures are reported through
        ``success``/``error`` on the returned model.
        """

        flow = FlowModel(flow_id=self.flow_id)
        try:
            self._parse_into(flow)
        except ParseError as exc:
            flow.success = False
            flow.error = str(exc)
            log.info("Flow %s failed to parse: %s", flow.flow_id, flow.error)
        return flow

    def _parse_into(self, flow: FlowModel) -> None:
        if not self.source.strip():
            raise ParseError("Flow source is empty")

        main_found = False
        i = 0
        while i < len(self.lines):
            line = self.lines[i]
            text = line.text
            if line.is_blank or line.is_comment:
                i += 1
                continue

            if is_input_declaration(text):
                values, last = parse_input_block(self.lines, i)
                flow.input_vars.update(values)
                i = last + 1
                continue

            if text.startswith(MAIN_PREFIX):
                end = find_block_end(self.lines, i)
                if end == -1:
                    raise ParseError("main block is never closed", line=line.number)
                if main_found:
                    log.warning("Ignoring duplicate main function on line %s", line.number)
                else:
                    flow.main_statements = StatementParser(self.lines).parse_block(i + 1, end)
                    main_found = True
                i = end + 1
                continue

            if looks_like_step_declaration(text):
                step = parse_step_declaration(text, line.number, description_above(self.lines, i))
                if step is None:
                    log.debug("Skipping malformed step declaration on line %s", line.number)
                else:
                    flow.steps.append(step)
            i += 1

        if not main_found:
            raise ParseError("Flow source has no main function")

        for key, value in flow.input_vars.items():
            flow.variables[key] = VariableInfo(
                name=key,
                type=type_name(value),
                value=value,
                source="input",
                is_input=True,
            )
        self._declare_statement_variables(flow)

    def _declare_statement_variables(self, flow: FlowModel) -> None:
        """
        Register an unbound entry for every call-site return name and every
        ``:=`` assignment so the variable table lists the whole flow up front.
        Input entries keep their values.
        """

        for stmt in flow.iter_statements():
            if isinstance(stmt, CallStatement):
                step = flow.get_step(stmt.function)
                outputs = step.output_params if step is not None else []
                for index, name in enumerate(stmt.returns):
                    if name == "_":
                        continue
                    var_type = outputs[index].type if index < len(outputs) else "unknown"
                    self._declare(flow, name, var_type, stmt.function, stmt.line_number)
            elif isinstance(stmt, VarStatement):
                parsed = parse_var_assignment(stmt.content)
                if parsed is not None:
                    self._declare(flow, parsed[0], "string", "assignment", stmt.line_number)

    @staticmethod
    def _declare(flow: FlowModel, name: str, var_type: str, source: str, line_num: int) -> None:
        existing = flow.variables.get(name)
        if existing is not None and existing.is_input:
            return
        flow.variables[name] = VariableInfo(name=name, type=var_type, source=source, line_num=line_num)


def parse_flow(source: str, flow_id: Optional[str] = None, strict: bool = False) -> FlowModel:
    """
    Parse flow source text.

    With ``strict=True`` a structural failure raises :class:`ParseError`
    instead of returning a model with ``success=False``.
    """

    flow = Parser(source, flow_id=flow_id).parse()
    if strict and not flow.success:
        raise ParseError(flow.error)
    return flow
