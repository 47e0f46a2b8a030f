"""Progress and completion notifications for a running flow."""

from __future__ import annotations

import copy
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

from ..models import FlowModel

log = logging.getLogger(__name__)

Hook = Callable[[FlowModel], Union[None, Awaitable[None]]]


@dataclass
class FlowHooks:
    """
    ``on_update`` fires after every statement, ``on_exit`` once on normal
    completion and ``on_return`` once when a ``return`` executes. Each hook
    receives a deep copy of the flow.

    A failing hook is logged and the flow carries on, unless ``strict`` is set,
    in which case the hook's exception aborts the flow.
    """

    on_update: Optional[Hook] = None
    on_exit: Optional[Hook] = None
    on_return: Optional[Hook] = None
    strict: bool = False

    async def emit(self, name: str, flow: FlowModel) -> bool:
        """Run hook ``name``; returns False when it failed and was tolerated."""
        hook = getattr(self, name)
        if hook is None:
            return True
        try:
            result: Any = hook(copy.deepcopy(flow))
            if inspect.isawaitable(result):
                await result
        except Exception:
            log.exception("Flow hook %s failed for flow %s", name, flow.flow_id)
            if self.strict:
                raise
            return False
        return True
