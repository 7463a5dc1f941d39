"""
wiwebb_data.cache

Request-cache package.

Responsibilities:
- Keyed cache with staleness, background refetch and prefix invalidation (`query_cache`).
- Freshness policy per data family (`policies`).
"""

from wiwebb_data.cache.query_cache import CacheEntry, Peek, QueryCache, QueryPolicy

__all__ = ["CacheEntry", "Peek", "QueryCache", "QueryPolicy"]
