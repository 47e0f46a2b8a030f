"""
Cancellation tokens and the registry of running flows.
"""

from __future__ import annotations

import threading
from typing import Dict, List, Optional

from ..errors import FlowAlreadyRunningError, FlowNotRunningError


class CancelToken:
    """Cooperative, thread-safe cancellation flag; cancelled when its parent is."""

    def __init__(self, parent: Optional["CancelToken"] = None) -> None:
        self._event = threading.Event()
        self._parent = parent
        self.reason = ""

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    def child(self) -> "CancelToken":
        return CancelToken(parent=self)


class FlowRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tokens: Dict[str, CancelToken] = {}

    def register(self, flow_id: str, token: CancelToken) -> None:
        with self._lock:
            if flow_id in self._tokens:
                raise FlowAlreadyRunningError(f"Flow '{flow_id}' is already running", flow_id=flow_id)
            self._tokens[flow_id] = token

    def unregister(self, flow_id: str) -> None:
        with self._lock:
            self._tokens.pop(flow_id, None)

    def cancel(self, flow_id: str, reason: str = "stopped") -> None:
        with self._lock:
            token = self._tokens.get(flow_id)
        if token is None:
            raise FlowNotRunningError(f"Flow '{flow_id}' is not running", flow_id=flow_id)
        token.cancel(reason)

    def is_running(self, flow_id: str) -> bool:
        with self._lock:
            return flow_id in self._tokens

    def running(self) -> List[str]:
        with self._lock:
            return sorted(self._tokens)
