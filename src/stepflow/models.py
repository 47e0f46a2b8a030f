"""
Flow model: the structure produced by the parser and mutated by the executor.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional

from .options import ExecutionOptions
from .values import from_jsonable, to_jsonable


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_iso(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class StatementStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    FAILED_CONTINUE = "failed_continue"
    CANCELLED = "cancelled"


@dataclass
class ParamInfo:
    name: str
    type: str = ""
    desc: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type, "desc": self.desc}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParamInfo":
        return cls(name=data["name"], type=data.get("type", ""), desc=data.get("desc", ""))


@dataclass
class StepLog:
    level: str
    message: str
    source: str = ""
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": _iso(self.timestamp),
            "level": self.level,
            "message": self.message,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StepLog":
        return cls(
            level=data.get("level", "info"),
            message=data.get("message", ""),
            source=data.get("source", ""),
            timestamp=_parse_iso(data.get("timestamp")) or _utcnow(),
        )


@dataclass
class StepDefinition:
    """alias = fq.function(params) -> (outputs); a reusable external step."""

    name: str
    function: str
    input_params: List[ParamInfo] = field(default_factory=list)
    output_params: List[ParamInfo] = field(default_factory=list)
    is_static: bool = False
    case_id: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    desc: str = ""
    line_number: int = 0
    logs: List[StepLog] = field(default_factory=list)

    @property
    def err_continue(self) -> bool:
        return self.metadata.get("err_continue") is True

    def add_log(self, level: str, message: str, source: str = "") -> StepLog:
        entry = StepLog(level=level, message=message, source=source or self.name)
        self.logs.append(entry)
        return entry

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "function": self.function,
            "input_params": [p.to_dict() for p in self.input_params],
            "output_params": [p.to_dict() for p in self.output_params],
            "is_static": self.is_static,
            "case_id": self.case_id,
            "metadata": to_jsonable(self.metadata),
            "desc": self.desc,
            "line_number": self.line_number,
            "logs": [entry.to_dict() for entry in self.logs],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StepDefinition":
        return cls(
            name=data["name"],
            function=data.get("function", ""),
            input_params=[ParamInfo.from_dict(p) for p in data.get("input_params") or []],
            output_params=[ParamInfo.from_dict(p) for p in data.get("output_params") or []],
            is_static=bool(data.get("is_static")),
            case_id=data.get("case_id", ""),
            metadata=from_jsonable(data.get("metadata") or {}),
            desc=data.get("desc", ""),
            line_number=data.get("line_number", 0),
            logs=[StepLog.from_dict(entry) for entry in data.get("logs") or []],
        )


@dataclass
class Argument:
    """A call-site actual parameter."""

    value: str
    is_input: bool = False
    is_literal: bool = False

    @property
    def input_key(self) -> Optional[str]:
        """Key inside ``input["key"]``, or None for non-input arguments."""
        if not self.is_input:
            return None
        inner = self.value.strip()[len("input[") : -1].strip()
        if len(inner) >= 2 and inner[0] == inner[-1] and inner[0] in {'"', "'"}:
            inner = inner[1:-1]
        return inner

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "is_input": self.is_input, "is_literal": self.is_literal}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Argument":
        return cls(
            value=data["value"],
            is_input=bool(data.get("is_input")),
            is_literal=bool(data.get("is_literal")),
        )


@dataclass
class Statement:
    """Common fields for every executable statement."""

    kind: ClassVar[str] = ""

    line_number: int = 0
    content: str = ""
    desc: str = ""
    status: StatementStatus = StatementStatus.PENDING
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration_seconds: float = 0.0
    retry_count: int = 0

    def start_execution(self) -> None:
        self.start_time = _utcnow()
        self.end_time = None
        self.status = StatementStatus.RUNNING

    def end_execution(self, status: StatementStatus | None = None) -> None:
        self.end_time = _utcnow()
        if self.start_time is not None:
            self.duration_seconds = (self.end_time - self.start_time).total_seconds()
        if status is not None:
            self.status = status

    @property
    def finished(self) -> bool:
        return self.status not in {StatementStatus.PENDING, StatementStatus.RUNNING}

    def _extra_dict(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "type": self.kind,
            "line_number": self.line_number,
            "content": self.content,
            "desc": self.desc,
            "status": self.status.value,
            "start_time": _iso(self.start_time),
            "end_time": _iso(self.end_time),
            "duration_seconds": self.duration_seconds,
            "retry_count": self.retry_count,
        }
        data.update(self._extra_dict())
        return data

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Statement":
        kind = data.get("type")
        common = dict(
            line_number=data.get("line_number", 0),
            content=data.get("content", ""),
            desc=data.get("desc", ""),
            status=StatementStatus(data.get("status", StatementStatus.PENDING.value)),
            start_time=_parse_iso(data.get("start_time")),
            end_time=_parse_iso(data.get("end_time")),
            duration_seconds=data.get("duration_seconds", 0.0),
            retry_count=data.get("retry_count", 0),
        )
        if kind == CallStatement.kind:
            return CallStatement(
                function=data.get("function", ""),
                args=[Argument.from_dict(a) for a in data.get("args") or []],
                returns=list(data.get("returns") or []),
                metadata=from_jsonable(data.get("metadata") or {}),
                options=ExecutionOptions.from_dict(data.get("options")),
                **common,
            )
        if kind == IfStatement.kind:
            return IfStatement(
                condition=data.get("condition", ""),
                children=[Statement.from_dict(child) for child in data.get("children") or []],
                **common,
            )
        if kind == VarStatement.kind:
            return VarStatement(**common)
        if kind == ReturnStatement.kind:
            return ReturnStatement(**common)
        raise ValueError(f"Unknown statement type: {kind!r}")


@dataclass
class CallStatement(Statement):
    kind: ClassVar[str] = "function-call"

    function: str = ""
    args: List[Argument] = field(default_factory=list)
    returns: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    options: ExecutionOptions = field(default_factory=ExecutionOptions)

    def _extra_dict(self) -> Dict[str, Any]:
        return {
            "function": self.function,
            "args": [arg.to_dict() for arg in self.args],
            "returns": list(self.returns),
            "metadata": to_jsonable(self.metadata),
            "options": self.options.to_dict(),
        }


@dataclass
class IfStatement(Statement):
    kind: ClassVar[str] = "if"

    condition: str = ""
    children: List[Statement] = field(default_factory=list)

    def _extra_dict(self) -> Dict[str, Any]:
        return {
            "condition": self.condition,
            "children": [child.to_dict() for child in self.children],
        }


@dataclass
class VarStatement(Statement):
    kind: ClassVar[str] = "var"


@dataclass
class ReturnStatement(Statement):
    kind: ClassVar[str] = "return"


@dataclass
class VariableInfo:
    name: str
    type: str = ""
    value: Any = None
    source: str = ""
    line_num: int = 0
    is_input: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "value": to_jsonable(self.value),
            "source": self.source,
            "line_num": self.line_num,
            "is_input": self.is_input,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VariableInfo":
        return cls(
            name=data["name"],
            type=data.get("type", ""),
            value=from_jsonable(data.get("value")),
            source=data.get("source", ""),
            line_num=data.get("line_num", 0),
            is_input=bool(data.get("is_input")),
        )


@dataclass
class FlowModel:
    """Parse result; ``variables`` is the flow's whole mutable execution state."""

    flow_id: str
    input_vars: Dict[str, Any] = field(default_factory=dict)
    steps: List[StepDefinition] = field(default_factory=list)
    main_statements: List[Statement] = field(default_factory=list)
    variables: Dict[str, VariableInfo] = field(default_factory=dict)
    success: bool = True
    error: str = ""
    global_logs: List[StepLog] = field(default_factory=list)

    def get_step(self, name: str) -> Optional[StepDefinition]:
        for step in self.steps:
            if step.name == name:
                return step
        return None

    def get_value(self, name: str, default: Any = None) -> Any:
        info = self.variables.get(name)
        return info.value if info is not None else default

    def add_global_log(self, level: str, message: str, source: str = "system") -> StepLog:
        entry = StepLog(level=level, message=message, source=source)
        self.global_logs.append(entry)
        return entry

    def iter_statements(self):
        """Yield every statement, depth first, including if-children."""

        def walk(statements: List[Statement]):
            for stmt in statements:
                yield stmt
                if isinstance(stmt, IfStatement):
                    yield from walk(stmt.children)

        return walk(self.main_statements)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "flow_id": self.flow_id,
            "success": self.success,
            "error": self.error,
            "input_vars": to_jsonable(self.input_vars),
            "steps": [step.to_dict() for step in self.steps],
            "main_func": {"statements": [stmt.to_dict() for stmt in self.main_statements]},
            "variables": {name: info.to_dict() for name, info in self.variables.items()},
            "global_logs": [entry.to_dict() for entry in self.global_logs],
        }

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FlowModel":
        main_func = data.get("main_func") or {}
        return cls(
            flow_id=data["flow_id"],
            input_vars=from_jsonable(data.get("input_vars") or {}),
            steps=[StepDefinition.from_dict(step) for step in data.get("steps") or []],
            main_statements=[Statement.from_dict(stmt) for stmt in main_func.get("statements") or []],
            variables={
                name: VariableInfo.from_dict(info) for name, info in (data.get("variables") or {}).items()
            },
            success=bool(data.get("success", True)),
            error=data.get("error", ""),
            global_logs=[StepLog.from_dict(entry) for entry in data.get("global_logs") or []],
        )

    @classmethod
    def from_json(cls, payload: str) -> "FlowModel":
        return cls.from_dict(json.loads(payload))
