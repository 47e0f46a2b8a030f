"""
Environment-driven engine configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_BACKOFF_SECONDS = 1.0
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_SNAPSHOT_RETENTION = 256

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    try:
        value = float(environ.get(name, default))
    except (TypeError, ValueError):
        return default
    return value if value >= 0 else default


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    try:
        value = int(environ.get(name, default))
    except (TypeError, ValueError):
        return default
    return value if value >= 0 else default


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    return default


@dataclass
class StepflowConfig:
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS
    enforce_timeouts: bool = False
    log_level: str = DEFAULT_LOG_LEVEL
    redact_logs: bool = True
    # Finished flows whose last checkpoint stays readable through FlowExecutor.get.
    snapshot_retention: int = DEFAULT_SNAPSHOT_RETENTION


def load_config(env: Optional[Mapping[str, str]] = None) -> StepflowConfig:
    environ = os.environ if env is None else env
    return StepflowConfig(
        backoff_seconds=_env_float(environ, "STEPFLOW_BACKOFF_SECONDS", DEFAULT_BACKOFF_SECONDS),
        enforce_timeouts=_env_bool(environ, "STEPFLOW_ENFORCE_TIMEOUTS", False),
        log_level=(environ.get("STEPFLOW_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
        redact_logs=_env_bool(environ, "STEPFLOW_LOG_REDACT", True),
        snapshot_retention=_env_int(environ, "STEPFLOW_SNAPSHOT_RETENTION", DEFAULT_SNAPSHOT_RETENTION),
    )
