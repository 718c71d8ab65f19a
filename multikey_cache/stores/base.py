"""
Base cache store and common implementations.

A cache store durably saves the archive for one cache entry. Archiving,
compression and upload all happen behind this boundary; the orchestrator
only calls save() once per entry and records whether it raised.
"""

import logging
from abc import ABC, abstractmethod

from multikey_cache.schemas import SaveRequest

logger = logging.getLogger(__name__)


class CacheStore(ABC):
    """
    Abstract base class for cache stores.

    Stores must be safe to call from several threads at once: the
    orchestrator runs one save per entry concurrently.
    """

    @abstractmethod
    def save(self, request: SaveRequest) -> None:
        """
        Save the paths of one cache entry under its key.

        Args:
            request: The SaveRequest describing the entry

        Raises:
            Exception: If the save fails (SaveError preferred)
        """
        pass


class NoOpCacheStore(CacheStore):
    """
    No-op store for testing and dry-run mode.

    Logs what would be saved without saving anything.
    """

    def save(self, request: SaveRequest) -> None:
        logger.info(
            f"[DRY-RUN] would save key '{request.key}' "
            f"(unique={request.is_key_unique}, level={request.compression_level}): "
            f"{', '.join(request.paths)}"
        )
