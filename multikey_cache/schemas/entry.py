"""
Entry schemas - the parsed form of the key-path specification.

CacheEntrySpec is one validated unit of work.
ParseOutcome collects the entries and the per-line errors of one parse.
"""

from dataclasses import dataclass, field
from typing import Any

from multikey_cache.errors import SpecLineError


@dataclass(frozen=True)
class CacheEntrySpec:
    """
    A single cache entry: one key mapped to the paths archived under it.

    Attributes:
        key: User-supplied cache key
        paths: Ordered paths to archive (at least one)
        is_unique: True if the line carried the uniqueness marker
    """
    key: str
    paths: tuple[str, ...]
    is_unique: bool = False

    def __post_init__(self):
        if not self.paths:
            raise ValueError(f"Cache entry '{self.key}' must have at least one path")

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "key": self.key,
            "paths": list(self.paths),
            "is_unique": self.is_unique,
        }


@dataclass
class ParseOutcome:
    """
    Result of parsing the key-path specification.

    Attributes:
        entries: Entries keyed by cache key, in order of first occurrence
        errors: Per-line errors in line order
    """
    entries: dict[str, CacheEntrySpec] = field(default_factory=dict)
    errors: list[SpecLineError] = field(default_factory=list)

    @property
    def keys(self) -> list[str]:
        return list(self.entries)
