"""Scan ingestion pipeline: debounce, persist, feed back and sync barcode scans."""

__version__ = "0.1.0"

__all__ = [
    "api",
    "config",
    "export",
    "feedback",
    "pipeline",
    "share",
    "storage",
    "sync",
]
