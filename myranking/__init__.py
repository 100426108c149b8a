"""MY RANKING API distribution package; re-exports the FastAPI application."""

from __future__ import annotations

from app.main import app, create_app

__all__ = ["app", "create_app", "__version__"]

__version__ = "2.0.0"
