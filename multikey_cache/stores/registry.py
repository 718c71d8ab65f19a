"""
Store registry for resolving a cache store by name.

Built-in stores:
- noop: logs and succeeds (dry-run)
- command: runs an external save command per entry

Additional stores are discovered from the `multikey_cache.stores`
entry-point group. Each entry point must load to a callable accepting
keyword options and returning a CacheStore.
"""

from importlib.metadata import entry_points
from typing import Any, Callable

from multikey_cache.errors import ConfigError
from multikey_cache.stores.base import CacheStore, NoOpCacheStore
from multikey_cache.stores.command import CommandCacheStore

ENTRY_POINT_GROUP = "multikey_cache.stores"

StoreFactory = Callable[..., CacheStore]


def _noop_factory(**options: Any) -> CacheStore:
    return NoOpCacheStore()


def _command_factory(command: str | None = None, timeout: float | None = None, **options: Any) -> CacheStore:
    if not command:
        raise ConfigError("The 'command' store requires a save command")
    return CommandCacheStore(command, timeout=timeout)


class StoreRegistry:
    """
    Registry mapping store names to store factories.

    Usage:
        registry = StoreRegistry.create_default()
        store = registry.create("command", command="cache-tool save")
    """

    def __init__(self) -> None:
        """Initialize an empty store registry."""
        self._factories: dict[str, StoreFactory] = {}

    def register(self, name: str, factory: StoreFactory) -> None:
        """Register a store factory under a name."""
        self._factories[name] = factory

    def has(self, name: str) -> bool:
        return name in self._factories

    def list_stores(self) -> list[str]:
        """List all registered store names, sorted."""
        return sorted(self._factories)

    def get(self, name: str) -> StoreFactory:
        """
        Get the factory for a store name.

        Raises:
            KeyError: If no store is registered under this name
        """
        if name not in self._factories:
            raise KeyError(
                f"No cache store registered as: {name}. "
                f"Registered: {self.list_stores()}"
            )
        return self._factories[name]

    def create(self, name: str, **options: Any) -> CacheStore:
        """Build a store instance by name."""
        return self.get(name)(**options)

    def load_entry_points(self) -> None:
        """Register stores published by installed packages."""
        for ep in entry_points().select(group=ENTRY_POINT_GROUP):
            self.register(ep.name, ep.load())

    @classmethod
    def create_default(cls, discover: bool = True) -> "StoreRegistry":
        """
        Create a registry with the built-in stores.

        Args:
            discover: Also load stores from installed entry points
        """
        registry = cls()
        registry.register("noop", _noop_factory)
        registry.register("command", _command_factory)
        if discover:
            registry.load_entry_points()
        return registry
