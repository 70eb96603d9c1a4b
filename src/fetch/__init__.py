"""Module fetching, caching and vendoring.

``fetch.fetcher`` is imported directly by callers; it depends on the
registry clients, which themselves depend on ``fetch.models``.
"""

from .models import FetchMode, FetchModeKind, LoadResult
from .cache import CacheEntry, DiskCache
from .vendor import VendorStore

__all__ = [
    "CacheEntry",
    "DiskCache",
    "FetchMode",
    "FetchModeKind",
    "LoadResult",
    "VendorStore",
]
