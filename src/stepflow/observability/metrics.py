"""
Aggregated run metrics for flows and steps.
"""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass
class StepMetricsSnapshot:
    calls: int = 0
    failures: int = 0
    retries: int = 0
    total_duration_seconds: float = 0.0


@dataclass
class FlowMetricsSnapshot:
    total_runs: int = 0
    completed: int = 0
    returned_early: int = 0
    failed: int = 0
    cancelled: int = 0
    avg_duration_seconds: float = 0.0


class MetricsRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._steps: Dict[str, StepMetricsSnapshot] = {}
        self._flows = FlowMetricsSnapshot()
        self._hook_failures: Dict[str, int] = {}

    def record_step(self, step_name: str, duration_seconds: float, *, failed: bool = False, retried: bool = False) -> None:
        with self._lock:
            snap = self._steps.setdefault(step_name, StepMetricsSnapshot())
            snap.calls += 1
            snap.total_duration_seconds += max(duration_seconds, 0.0)
            if failed:
                snap.failures += 1
            if retried:
                snap.retries += 1

    def record_flow(self, outcome: str, duration_seconds: float) -> None:
        with self._lock:
            snap = self._flows
            snap.total_runs += 1
            if outcome == "completed":
                snap.completed += 1
            elif outcome == "returned":
                snap.returned_early += 1
            elif outcome == "cancelled":
                snap.cancelled += 1
            else:
                snap.failed += 1
            snap.avg_duration_seconds = (
                (snap.avg_duration_seconds * (snap.total_runs - 1)) + duration_seconds
            ) / snap.total_runs

    def record_hook_failure(self, hook_name: str) -> None:
        with self._lock:
            self._hook_failures[hook_name] = self._hook_failures.get(hook_name, 0) + 1

    def get_hook_failures(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._hook_failures)

    def get_step_metrics(self) -> Dict[str, StepMetricsSnapshot]:
        with self._lock:
            return {name: StepMetricsSnapshot(**asdict(snap)) for name, snap in self._steps.items()}

    def get_flow_metrics(self) -> FlowMetricsSnapshot:
        with self._lock:
            return FlowMetricsSnapshot(**asdict(self._flows))

    def snapshot(self) -> Dict[str, Any]:
        return {
            "flows": asdict(self.get_flow_metrics()),
            "steps": {name: asdict(snap) for name, snap in self.get_step_metrics().items()},
            "hook_failures": self.get_hook_failures(),
        }


default_metrics = MetricsRegistry()
