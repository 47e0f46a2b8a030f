from .logging_utils import configure_logging, redact_event, redact_metadata
from .metrics import FlowMetricsSnapshot, MetricsRegistry, StepMetricsSnapshot, default_metrics

__all__ = [
    "FlowMetricsSnapshot",
    "MetricsRegistry",
    "StepMetricsSnapshot",
    "configure_logging",
    "default_metrics",
    "redact_event",
    "redact_metadata",
]
