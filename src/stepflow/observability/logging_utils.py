"""
Logging setup and redaction of step inputs before they reach log records.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..config import load_config

_SENSITIVE_KEYS = {"email", "phone", "authorization", "access_token", "api_key", "password", "secret", "token"}
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Set the ``stepflow`` logger level and install a stderr handler on the root
    logger unless the host application already configured one.

    ``level`` defaults to the configured ``log_level``.
    """

    name = (level or load_config().log_level).upper()
    logging.basicConfig(format=_LOG_FORMAT)
    logging.getLogger("stepflow").setLevel(getattr(logging, name, logging.INFO))


def redact_metadata(meta: Dict[str, Any], enabled: Optional[bool] = None) -> Dict[str, Any]:
    if enabled is None:
        enabled = load_config().redact_logs
    if not enabled:
        return dict(meta)
    redacted: Dict[str, Any] = {}
    for key, value in meta.items():
        if str(key).lower() in _SENSITIVE_KEYS:
            redacted[key] = "[REDACTED]"
        else:
            redacted[key] = value
    return redacted


def redact_event(event: Dict[str, Any], enabled: Optional[bool] = None) -> Dict[str, Any]:
    """
    Redact the ``input`` and ``outputs`` maps of a step event before logging.
    """

    sanitized = dict(event)
    for key in ("input", "outputs", "metadata"):
        if key in sanitized and isinstance(sanitized[key], dict):
            sanitized[key] = redact_metadata(sanitized[key], enabled)
    return sanitized
