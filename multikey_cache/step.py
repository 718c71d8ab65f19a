"""
The multikey save cache step.

Ties the pieces together for one run:
1. Log the bound step input
2. Enable debug logging when verbose
3. Parse key_path_pairs into entries (fatal if none are valid)
4. Save every entry concurrently (fatal only if all saves fail)
"""

import logging
from typing import Optional

from multikey_cache.config import SpecLimits, StepInput
from multikey_cache.orchestrator import STEP_ID, save_entries
from multikey_cache.parser import parse_key_path_pairs
from multikey_cache.schemas import SaveOutcome
from multikey_cache.stores import CacheStore
from multikey_cache.utils import enable_debug_log

logger = logging.getLogger(__name__)


def log_input(step_input: StepInput) -> None:
    """Log the step configuration, one input per line."""
    logger.info("Step inputs:")
    for name, value in step_input.to_dict().items():
        if isinstance(value, str) and "\n" in value:
            logger.info(f"- {name}:")
            for line in value.split("\n"):
                logger.info(f"    {line}")
        else:
            logger.info(f"- {name}: {value}")


def run_step(
    step_input: StepInput,
    store: CacheStore,
    limits: Optional[SpecLimits] = None,
) -> SaveOutcome:
    """
    Run the save step.

    Args:
        step_input: Validated step input
        store: CacheStore performing the individual saves
        limits: Key-path format limits (defaults to SpecLimits())

    Returns:
        SaveOutcome of the run

    Raises:
        NoValidEntriesError: If key_path_pairs has no valid entry
        AllSavesFailedError: If every save failed
    """
    log_input(step_input)
    enable_debug_log(step_input.verbose)

    parsed = parse_key_path_pairs(step_input.key_path_pairs, limits)
    logger.info(f"Found {len(parsed.entries)} cache key(s): {', '.join(parsed.keys)}")

    return save_entries(
        parsed.entries,
        store,
        verbose=step_input.verbose,
        compression_level=step_input.compression_level,
        custom_tar_args=step_input.tar_args,
        step_id=STEP_ID,
    )
