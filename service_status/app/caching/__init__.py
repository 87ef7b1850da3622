"""
Gateway caching package.

Provides the in-process TTL cache used to reduce load on the upstream
directory. Entries are short-lived and invalidated explicitly whenever the
suppression list changes.
"""

from .ttl_cache import CacheEntry, TTLCache

__all__ = ["CacheEntry", "TTLCache"]
