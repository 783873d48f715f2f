"""HTTP surface for the scan relay."""

from .app import get_app

__all__ = ["get_app"]
