"""Application factory for the stepflow HTTP control plane."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI

from ..flows import FixtureHandler, FlowExecutor
from ..version import __version__
from .routes import build_flows_router, build_health_router, build_metrics_router

log = logging.getLogger(__name__)


def create_app(executor: Optional[FlowExecutor] = None) -> FastAPI:
    """
    Build the FastAPI app around ``executor``.

    Without an executor, flows run against an empty :class:`FixtureHandler`,
    so every step succeeds with no outputs.
    """

    if executor is None:
        log.info("No executor supplied; using an empty fixture handler")
        executor = FlowExecutor(FixtureHandler({}))
    app = FastAPI(title="stepflow", version=__version__)
    app.state.executor = executor
    app.include_router(build_health_router())
    app.include_router(build_flows_router(executor))
    app.include_router(build_metrics_router(executor.metrics))
    return app
