"""
Error classes for multikey-cache.

The step distinguishes three kinds of failure:
- ConfigError: Step input cannot be bound (fatal, nothing is parsed)
- SpecLineError: A single key-path line is unusable (collected, not fatal)
- SaveError: A single entry failed to save (collected, not fatal)

Collected errors only become fatal in aggregate:
- NoValidEntriesError: every processed line was rejected
- AllSavesFailedError: every attempted save failed

Per-item details are carried on the aggregate error so the caller can
log them next to the single failure cause.
"""

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from multikey_cache.schemas import SaveOutcome


class MultikeyCacheError(Exception):
    """Base exception for multikey-cache."""
    pass


class ConfigError(MultikeyCacheError):
    """Step input could not be bound into a valid StepInput."""
    pass


class SpecLineError(MultikeyCacheError):
    """
    A single line of the key-path specification could not be used.

    Attributes:
        line_number: 1-based index of the line in the raw input
        line: The raw (untrimmed) line text
    """

    def __init__(self, line_number: int, line: str, message: str):
        self.line_number = line_number
        self.line = line
        super().__init__(message)


class MalformedLineError(SpecLineError):
    """Line does not follow the `KEY = PATH1, PATH2, ...` format."""

    def __init__(self, line_number: int, line: str):
        super().__init__(
            line_number,
            line,
            f"invalid input (lines should follow the `KEY = PATH1, PATH2, ...` format): {line}",
        )


class NoPathsError(SpecLineError):
    """Line names a key but no usable paths."""

    def __init__(self, line_number: int, line: str, key: str):
        self.key = key
        super().__init__(line_number, line, f"no paths found for key: {key}")


class NoValidEntriesError(MultikeyCacheError):
    """Parsing produced no cache entries at all."""

    def __init__(self, errors: Sequence[SpecLineError] = ()):
        self.errors = list(errors)
        super().__init__("no key-path pairs found in input")


class SaveError(MultikeyCacheError):
    """
    Saving a single cache entry failed.

    Raised by cache stores. The orchestrator records it against the key
    and keeps going with the other entries.
    """

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(message)


class AllSavesFailedError(MultikeyCacheError):
    """Every attempted save failed."""

    def __init__(self, outcome: "SaveOutcome"):
        self.outcome = outcome
        super().__init__("save failed")
