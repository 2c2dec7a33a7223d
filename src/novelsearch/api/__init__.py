"""HTTP read API over the populated paragraph index."""

from .app import create_app

__all__ = ["create_app"]
