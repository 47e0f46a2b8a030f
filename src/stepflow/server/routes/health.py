"""Health route."""

from __future__ import annotations

from typing import Dict

from fastapi import APIRouter

from ...version import MODEL_VERSION, __version__


def build_health_router() -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok", "version": __version__, "model_version": MODEL_VERSION}

    return router


__all__ = ["build_health_router"]
