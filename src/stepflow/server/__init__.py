"""HTTP control plane for running flows."""

from .app import create_app

__all__ = ["create_app"]
