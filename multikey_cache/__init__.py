"""
multikey_cache - Save several CI cache entries in one step

Parses a multi-line key/paths specification and saves each entry
concurrently through a pluggable cache store. Partial failures are
warnings; the step only fails when nothing could be saved.
"""

__version__ = "0.1.0"


__all__ = [
    "SpecLimits",
    "StepInput",
    "load_input",
    "parse_key_path_pairs",
    "save_entries",
    "run_step",
]

from .config import SpecLimits, StepInput, load_input
from .parser import parse_key_path_pairs
from .orchestrator import save_entries
from .step import run_step
