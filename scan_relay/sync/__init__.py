"""Remote upload of scan records."""

from .client import SyncClient, SyncFailed, SyncResult
from .policy import RetryPolicy

__all__ = ["RetryPolicy", "SyncClient", "SyncFailed", "SyncResult"]
