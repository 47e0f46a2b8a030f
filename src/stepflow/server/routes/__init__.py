from .flows import build_flows_router
from .health import build_health_router
from .metrics import build_metrics_router

__all__ = ["build_flows_router", "build_health_router", "build_metrics_router"]
