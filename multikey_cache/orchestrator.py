"""
Save orchestrator - concurrent fan-out of one save per cache entry.

Every entry gets its own task on a thread pool sized to the entry count.
Each task reports exactly one result into a bounded queue without
blocking; the orchestrator waits for every task, then drains the queue
once and applies the partial-failure policy:

- at least one entry saved: success, failures are logged as warnings
- every entry failed: AllSavesFailedError

No retries and no cancellation: one entry's failure never affects the
other saves.
"""

import logging
import queue
from concurrent.futures import ALL_COMPLETED, ThreadPoolExecutor, wait
from typing import Mapping, Optional, Sequence

from multikey_cache.errors import AllSavesFailedError
from multikey_cache.schemas import CacheEntrySpec, SaveFailure, SaveOutcome, SaveRequest
from multikey_cache.stores import CacheStore
from multikey_cache.utils import format_error_list

logger = logging.getLogger(__name__)

STEP_ID = "multikey-save-cache"


def build_requests(
    entries: Mapping[str, CacheEntrySpec],
    *,
    verbose: bool,
    compression_level: int,
    custom_tar_args: Sequence[str] = (),
    step_id: str = STEP_ID,
) -> list[SaveRequest]:
    """Build one SaveRequest per entry, in entry order."""
    tar_args = tuple(custom_tar_args)
    return [
        SaveRequest(
            step_id=step_id,
            verbose=verbose,
            key=entry.key,
            paths=entry.paths,
            is_key_unique=entry.is_unique,
            compression_level=compression_level,
            custom_tar_args=tar_args,
        )
        for entry in entries.values()
    ]


def _save_one(
    store: CacheStore,
    request: SaveRequest,
    results: "queue.Queue[Optional[SaveFailure]]",
) -> None:
    """Run a single save and report exactly one result."""
    try:
        store.save(request)
    except Exception as e:
        logger.debug(f"Save failed for key '{request.key}': {e}", exc_info=True)
        results.put_nowait(SaveFailure(key=request.key, error=str(e) or type(e).__name__))
        return
    logger.info(f"Saved cache for key '{request.key}'")
    results.put_nowait(None)


def save_entries(
    entries: Mapping[str, CacheEntrySpec],
    store: CacheStore,
    *,
    verbose: bool = False,
    compression_level: int = 3,
    custom_tar_args: Sequence[str] = (),
    step_id: str = STEP_ID,
) -> SaveOutcome:
    """
    Save every entry concurrently and aggregate the results.

    Args:
        entries: Cache entries keyed by cache key
        store: CacheStore receiving one save() per entry
        verbose: Passed through to the store
        compression_level: Passed through to the store
        custom_tar_args: Tokenized archiver arguments, passed through
        step_id: Step identifier, passed through

    Returns:
        SaveOutcome (success, possibly with partial failures)

    Raises:
        AllSavesFailedError: If every attempted save failed
    """
    requests = build_requests(
        entries,
        verbose=verbose,
        compression_level=compression_level,
        custom_tar_args=custom_tar_args,
        step_id=step_id,
    )
    outcome = SaveOutcome(attempted=len(requests))
    if not requests:
        return outcome

    # One slot per task, so put_nowait never raises queue.Full
    results: "queue.Queue[Optional[SaveFailure]]" = queue.Queue(maxsize=len(requests))

    logger.info(f"Saving {len(requests)} cache entries")
    with ThreadPoolExecutor(max_workers=len(requests), thread_name_prefix="save") as executor:
        futures = {executor.submit(_save_one, store, req, results): req for req in requests}
        wait(futures, return_when=ALL_COMPLETED)

    while not results.empty():
        result = results.get_nowait()
        if result is not None:
            outcome.failures.append(result)

    # A task that died with a BaseException (e.g. SystemExit) reported nothing
    for future, request in futures.items():
        error = future.exception()
        if error is not None:
            outcome.failures.append(
                SaveFailure(key=request.key, error=f"{type(error).__name__}: {error}")
            )

    if outcome.failures:
        logger.warning(format_error_list("save failures", outcome.failures))

    if outcome.all_failed:
        raise AllSavesFailedError(outcome)

    logger.info(
        f"Cache save finished: succeeded={outcome.succeeded}, failed={outcome.failed}"
    )
    return outcome
