"""
multikey_cache.schemas - Data structures for the save step.

RawSpecText -> ParseOutcome(CacheEntrySpec...) -> SaveRequest -> SaveOutcome

Lifecycle:
1. ParseOutcome: Validated, bounded entries plus the per-line errors
2. SaveRequest: Everything a CacheStore needs to save one entry
3. SaveOutcome: Aggregate of one save attempt per entry

Nothing outlives a single step invocation.
"""

from .entry import (
    CacheEntrySpec,
    ParseOutcome,
)
from .outcome import (
    SaveRequest,
    SaveFailure,
    SaveOutcome,
)

__all__ = [
    # Parsing
    "CacheEntrySpec",
    "ParseOutcome",
    # Saving
    "SaveRequest",
    "SaveFailure",
    "SaveOutcome",
]
