"""
Diagnostic definitions for flow validation.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class Diagnostic:
    code: str
    category: str
    severity: str
    message: str
    line: Optional[int] = None
    hint: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.severity == "error"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        location = f"line {self.line}: " if self.line is not None else ""
        return f"[{self.code}] {location}{self.message}"


@dataclass(frozen=True)
class DiagnosticDefinition:
    code: str
    category: str
    default_severity: str
    message_template: str


_DEFINITIONS: Dict[str, DiagnosticDefinition] = {
    "SF-101": DiagnosticDefinition(
        code="SF-101",
        category="semantic",
        default_severity="error",
        message_template="Call to undeclared step '{step}'",
    ),
    "SF-102": DiagnosticDefinition(
        code="SF-102",
        category="semantic",
        default_severity="error",
        message_template="Step '{step}' takes {expected} argument(s) but {given} were passed",
    ),
    "SF-103": DiagnosticDefinition(
        code="SF-103",
        category="semantic",
        default_severity="error",
        message_template="Step '{step}' returns {expected} value(s) but {given} names were bound",
    ),
    "SF-104": DiagnosticDefinition(
        code="SF-104",
        category="semantic",
        default_severity="warning",
        message_template="Static step '{step}' ignores its {given} call-site argument(s)",
    ),
    "SF-105": DiagnosticDefinition(
        code="SF-105",
        category="metadata",
        default_severity="warning",
        message_template="Ignored metadata on '{step}': {detail}",
    ),
    "SF-106": DiagnosticDefinition(
        code="SF-106",
        category="semantic",
        default_severity="warning",
        message_template="Condition '{condition}' is not supported and always evaluates to false",
    ),
    "SF-107": DiagnosticDefinition(
        code="SF-107",
        category="semantic",
        default_severity="warning",
        message_template="Step '{step}' is declared more than once; the first declaration wins",
    ),
}


def get_definition(code: str) -> Optional[DiagnosticDefinition]:
    return _DEFINITIONS.get(code)


def create_diagnostic(
    code: str,
    *,
    message_kwargs: Optional[Dict[str, Any]] = None,
    line: Optional[int] = None,
    hint: Optional[str] = None,
) -> Diagnostic:
    definition = get_definition(code)
    if not definition:
        raise ValueError(f"Unknown diagnostic code '{code}'")
    message = definition.message_template.format(**(message_kwargs or {}))
    return Diagnostic(
        code=definition.code,
        category=definition.category,
        severity=definition.default_severity,
        message=message,
        line=line,
        hint=hint,
    )
