"""
Key-path specification parser.

Turns the multi-line `key_path_pairs` input into an ordered, bounded set
of cache entries:

    [u] node-modules-abc123 = node_modules
    pip-packages-xyz789 = venv/, .cache/pip

Each line is one entry. A line starting with the uniqueness marker is a
unique entry. Unusable lines are recorded as errors and skipped; only a
parse that yields no entries at all is fatal.
"""

import logging
from typing import Optional

from multikey_cache.config import SpecLimits
from multikey_cache.errors import (
    MalformedLineError,
    NoPathsError,
    NoValidEntriesError,
    SpecLineError,
)
from multikey_cache.schemas import CacheEntrySpec, ParseOutcome
from multikey_cache.utils import format_error_list

logger = logging.getLogger(__name__)

DEFAULT_LIMITS = SpecLimits()


def split_paths(paths_string: str, key: str, path_limit: int) -> tuple[str, ...]:
    """
    Split a comma separated paths string into at most path_limit paths.

    Every token counts towards the limit; empty tokens are dropped after
    truncation.
    """
    paths = [p.strip() for p in paths_string.split(",")]
    if len(paths) > path_limit:
        logger.warning(
            f"Skipping additional paths for key '{key}' as the limit of {path_limit} paths has been reached"
        )
        paths = paths[:path_limit]
    return tuple(p for p in paths if p)


def parse_line(
    line: str,
    line_number: int,
    limits: SpecLimits = DEFAULT_LIMITS,
) -> CacheEntrySpec:
    """
    Parse a single line into a cache entry.

    Args:
        line: Raw line text
        line_number: 1-based line index, used in errors
        limits: Format limits

    Returns:
        The parsed CacheEntrySpec

    Raises:
        MalformedLineError: If the line has no `=`
        NoPathsError: If the line has no usable paths
    """
    key_and_paths = line.strip()
    is_unique = False
    if key_and_paths.startswith(limits.unique_marker):
        key_and_paths = key_and_paths[len(limits.unique_marker):].strip()
        is_unique = True

    key, sep, paths_string = key_and_paths.partition("=")
    if not sep:
        raise MalformedLineError(line_number, line)

    key = key.strip()
    if not key:
        # Accepted as-is; the cache store decides what an empty key means
        logger.warning(f"Line {line_number} has an empty cache key")

    paths = split_paths(paths_string, key, limits.path_limit)
    if not paths:
        raise NoPathsError(line_number, line, key)

    return CacheEntrySpec(key=key, paths=paths, is_unique=is_unique)


def parse_key_path_pairs(
    text: str,
    limits: Optional[SpecLimits] = None,
) -> ParseOutcome:
    """
    Parse the key-path specification.

    At most limits.key_limit lines are processed; the rest are dropped with
    a warning. A later line with the same key replaces the earlier entry
    but keeps its position.

    Args:
        text: Raw multi-line specification
        limits: Format limits (defaults to SpecLimits())

    Returns:
        ParseOutcome with entries in order of first occurrence and the
        per-line errors in line order

    Raises:
        NoValidEntriesError: If no line produced an entry
    """
    limits = limits or DEFAULT_LIMITS
    outcome = ParseOutcome()

    lines = text.split("\n")
    if len(lines) > limits.key_limit:
        logger.warning(
            f"Skipping additional keys as the limit of {limits.key_limit} keys has been reached"
        )
        lines = lines[:limits.key_limit]

    for idx, line in enumerate(lines, start=1):
        try:
            entry = parse_line(line, idx, limits)
        except SpecLineError as e:
            outcome.errors.append(e)
            continue

        if entry.key in outcome.entries:
            logger.debug(f"Key '{entry.key}' redefined on line {idx}, replacing earlier entry")
        outcome.entries[entry.key] = entry
        logger.debug(
            f"Parsed key '{entry.key}' (unique={entry.is_unique}) with paths: {', '.join(entry.paths)}"
        )

    if outcome.errors:
        logger.warning(format_error_list("key-path pair evaluation failures", outcome.errors))

    if not outcome.entries:
        raise NoValidEntriesError(outcome.errors)

    return outcome
