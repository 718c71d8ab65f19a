"""
Configuration management for the multikey save cache step.

Binds the step inputs (from the environment, a YAML file or CLI flags)
into a validated StepInput, and holds the format limits of the key-path
specification.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from multikey_cache.errors import ConfigError

# Input names, as exposed to the CI environment
INPUT_VERBOSE = "verbose"
INPUT_KEY_PATH_PAIRS = "key_path_pairs"
INPUT_COMPRESSION_LEVEL = "compression_level"
INPUT_CUSTOM_TAR_ARGS = "custom_tar_args"

MIN_COMPRESSION_LEVEL = 1
MAX_COMPRESSION_LEVEL = 19
DEFAULT_COMPRESSION_LEVEL = 3

_TRUE_VALUES = {"true", "yes", "1", "on"}
_FALSE_VALUES = {"false", "no", "0", "off"}


@dataclass(frozen=True)
class SpecLimits:
    """
    Format limits of the key-path specification.

    Attributes:
        key_limit: Max number of lines (keys) processed per run
        path_limit: Max number of paths kept per key
        unique_marker: Line prefix that marks a key as unique
    """
    key_limit: int = 10
    path_limit: int = 10
    unique_marker: str = "[u]"

    def __post_init__(self):
        if self.key_limit < 1:
            raise ConfigError("key_limit must be >= 1")
        if self.path_limit < 1:
            raise ConfigError("path_limit must be >= 1")
        if not self.unique_marker:
            raise ConfigError("unique_marker must not be empty")


@dataclass(frozen=True)
class StepInput:
    """Typed input of the save step."""
    verbose: bool
    key_path_pairs: str
    compression_level: int = DEFAULT_COMPRESSION_LEVEL
    custom_tar_args: str = ""

    def validate(self) -> None:
        """Validate input values."""
        if not self.key_path_pairs or not self.key_path_pairs.strip():
            raise ConfigError(f"{INPUT_KEY_PATH_PAIRS}: required input is empty")
        if not MIN_COMPRESSION_LEVEL <= self.compression_level <= MAX_COMPRESSION_LEVEL:
            raise ConfigError(
                f"{INPUT_COMPRESSION_LEVEL}: value {self.compression_level} is out of range "
                f"[{MIN_COMPRESSION_LEVEL}..{MAX_COMPRESSION_LEVEL}]"
            )

    @property
    def tar_args(self) -> tuple[str, ...]:
        """Custom tar args split on whitespace."""
        return tuple(self.custom_tar_args.split())

    def to_dict(self) -> dict[str, Any]:
        return {
            INPUT_VERBOSE: self.verbose,
            INPUT_KEY_PATH_PAIRS: self.key_path_pairs,
            INPUT_COMPRESSION_LEVEL: self.compression_level,
            INPUT_CUSTOM_TAR_ARGS: self.custom_tar_args,
        }


def parse_bool(name: str, value: Any) -> bool:
    """Parse a boolean input the way CI environments spell them."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name}: invalid boolean value: {value!r}")


def parse_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name}: invalid integer value: {value!r}")
    try:
        return int(str(value).strip())
    except ValueError:
        raise ConfigError(f"{name}: invalid integer value: {value!r}")


def load_input(source: Optional[Mapping[str, Any]] = None) -> StepInput:
    """
    Bind step input from a mapping of input names to raw values.

    Args:
        source: Mapping of input name to value. Defaults to os.environ.

    Returns:
        Validated StepInput

    Raises:
        ConfigError: If a required input is missing or a value is invalid
    """
    if source is None:
        source = os.environ

    missing = [
        name for name in (INPUT_VERBOSE, INPUT_KEY_PATH_PAIRS)
        if source.get(name) is None
    ]
    if missing:
        raise ConfigError(f"missing required input(s): {', '.join(missing)}")

    compression_level = source.get(INPUT_COMPRESSION_LEVEL)
    if compression_level is None or str(compression_level).strip() == "":
        compression_level = DEFAULT_COMPRESSION_LEVEL

    step_input = StepInput(
        verbose=parse_bool(INPUT_VERBOSE, source[INPUT_VERBOSE]),
        key_path_pairs=str(source[INPUT_KEY_PATH_PAIRS]),
        compression_level=parse_int(INPUT_COMPRESSION_LEVEL, compression_level),
        custom_tar_args=str(source.get(INPUT_CUSTOM_TAR_ARGS) or ""),
    )
    step_input.validate()
    return step_input


def read_input_file(config_path: Path) -> dict[str, Any]:
    """
    Read raw step input values from a YAML file.

    Raises:
        ConfigError: If the file is missing, empty, invalid or not a mapping
    """
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}")

    if not data:
        raise ConfigError("Configuration file is empty")
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file must contain a mapping: {config_path}")
    return data


def load_input_file(config_path: Path) -> StepInput:
    """Load and validate step input from a YAML file."""
    return load_input(read_input_file(config_path))
