"""HTTP liveness server and process entry point."""

from .app import LivenessRoutes, create_app, main

__all__ = ["LivenessRoutes", "create_app", "main"]
