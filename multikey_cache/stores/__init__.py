"""
Cache stores for the multikey save cache step.

A cache store is the boundary behind which archiving and upload happen.
The orchestrator calls CacheStore.save() once per entry.

Usage:
    from multikey_cache.stores import StoreRegistry

    registry = StoreRegistry.create_default()
    store = registry.create("command", command="cache-tool save")
"""

from multikey_cache.stores.base import CacheStore, NoOpCacheStore
from multikey_cache.stores.command import CommandCacheStore
from multikey_cache.stores.registry import StoreRegistry

__all__ = [
    "CacheStore",
    "NoOpCacheStore",
    "CommandCacheStore",
    "StoreRegistry",
]
