"""
Typed per-call execution options built from ``{key: value}`` metadata.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple

_PRIORITY_NAMES = {"high": 1, "medium": 0, "low": -1}
_LOG_LEVELS = {"debug", "info", "warn", "warning", "error"}


@dataclass
class ExecutionOptions:
    retry: int = 0
    timeout_ms: Optional[int] = None
    is_async: bool = False
    priority: int = 0
    debug: bool = False
    log_level: str = "info"
    ai_model: str = ""
    err_continue: Optional[bool] = None

    @property
    def timeout_seconds(self) -> Optional[float]:
        if self.timeout_ms is None:
            return None
        return self.timeout_ms / 1000.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any] | None) -> "ExecutionOptions":
        if not data:
            return cls()
        known = {key: data[key] for key in cls.__dataclass_fields__ if key in data}
        return cls(**known)

    @classmethod
    def from_metadata(cls, metadata: Dict[str, Any] | None) -> "ExecutionOptions":
        options, _ = parse_options(metadata)
        return options


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in {"true", "false"}:
        return value.lower() == "true"
    return None


def _as_non_negative_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int) and value >= 0:
        return value
    if isinstance(value, float) and value >= 0 and value.is_integer():
        return int(value)
    return None


def parse_options(metadata: Dict[str, Any] | None) -> Tuple[ExecutionOptions, List[str]]:
    """
    Build :class:`ExecutionOptions` from parsed metadata.

    Returns the options and a list of problems; malformed values are dropped
    and the default is kept. Unknown keys are ignored (they stay available in
    the raw metadata).
    """

    options = ExecutionOptions()
    problems: List[str] = []
    if not metadata:
        return options, problems

    for key in ("retry", "retry_count"):
        if key in metadata:
            retry = _as_non_negative_int(metadata[key])
            if retry is None:
                problems.append(f"'{key}' must be a non-negative integer, got {metadata[key]!r}")
            else:
                options.retry = retry
            break

    if "timeout" in metadata and metadata["timeout"] is not None:
        timeout = _as_non_negative_int(metadata["timeout"])
        if timeout is None:
            problems.append(f"'timeout' must be milliseconds, got {metadata['timeout']!r}")
        else:
            options.timeout_ms = timeout

    for key, attr in (("async", "is_async"), ("debug", "debug"), ("err_continue", "err_continue")):
        if key in metadata:
            flag = _as_bool(metadata[key])
            if flag is None:
                problems.append(f"'{key}' must be true or false, got {metadata[key]!r}")
            else:
                setattr(options, attr, flag)

    if "priority" in metadata:
        raw = metadata["priority"]
        if isinstance(raw, int) and not isinstance(raw, bool):
            options.priority = raw
        elif isinstance(raw, str) and raw.lower() in _PRIORITY_NAMES:
            options.priority = _PRIORITY_NAMES[raw.lower()]
        else:
            problems.append(f"'priority' must be an integer or high/medium/low, got {raw!r}")

    if "log_level" in metadata:
        level = str(metadata["log_level"]).lower()
        if level in _LOG_LEVELS:
            options.log_level = level
        else:
            problems.append(f"'log_level' {metadata['log_level']!r} is not a known level")

    if "ai_model" in metadata:
        options.ai_model = str(metadata["ai_model"])

    return options, problems
