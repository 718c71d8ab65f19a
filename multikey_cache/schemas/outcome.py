"""
Save schemas - what is handed to a cache store and what comes back.

SaveRequest is the single argument of CacheStore.save().
SaveOutcome aggregates the results of one save per entry.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class SaveRequest:
    """
    Everything a cache store needs to save one entry.

    Attributes:
        step_id: Identifier of the step performing the save
        verbose: Whether the store should log verbosely
        key: Cache key
        paths: Paths to archive under the key
        is_key_unique: Skip the "already exists" short-circuit in the store
        compression_level: Archive compression level (1-19)
        custom_tar_args: Extra archiver arguments, already tokenized
    """
    step_id: str
    verbose: bool
    key: str
    paths: tuple[str, ...]
    is_key_unique: bool
    compression_level: int
    custom_tar_args: tuple[str, ...] = ()


@dataclass(frozen=True)
class SaveFailure:
    """A failed save for a single key."""
    key: str
    error: str

    def __str__(self) -> str:
        return f"{self.key}: {self.error}"


@dataclass
class SaveOutcome:
    """
    Result of saving every entry.

    - attempted: number of save tasks launched
    - failures: one SaveFailure per failed key (order not significant)
    """
    attempted: int = 0
    failures: list[SaveFailure] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def succeeded(self) -> int:
        return self.attempted - self.failed

    @property
    def all_failed(self) -> bool:
        """True when every attempted save failed."""
        return self.attempted > 0 and self.failed == self.attempted

    @property
    def success(self) -> bool:
        """The step succeeds as long as at least one entry was saved."""
        return self.attempted > 0 and not self.all_failed

    @property
    def failed_keys(self) -> set[str]:
        return {f.key for f in self.failures}

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "success": self.success,
            "failures": [{"key": f.key, "error": f.error} for f in self.failures],
        }
