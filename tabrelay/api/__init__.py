"""HTTP surface for tab operations."""
from .app import create_app

__all__ = ["create_app"]
