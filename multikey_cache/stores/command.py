"""Cache store that delegates each save to an external command."""

import logging
import os
import shlex
import subprocess
from typing import Optional, Sequence

from multikey_cache.errors import ConfigError, SaveError
from multikey_cache.schemas import SaveRequest
from multikey_cache.stores.base import CacheStore
from multikey_cache.utils import truncate_message

logger = logging.getLogger(__name__)


class CommandCacheStore(CacheStore):
    """
    Run an external save command once per cache entry.

    The entry's paths are appended to the command line. The rest of the
    request is passed through the environment:

        CACHE_STEP_ID, CACHE_KEY, CACHE_IS_KEY_UNIQUE,
        CACHE_COMPRESSION_LEVEL, CACHE_CUSTOM_TAR_ARGS, CACHE_VERBOSE

    A non-zero exit status is reported as a SaveError carrying the tail of
    the command's stderr.
    """

    def __init__(
        self,
        command: str | Sequence[str],
        timeout: Optional[float] = None,
        env: Optional[dict[str, str]] = None,
    ):
        """
        Initialize CommandCacheStore.

        Args:
            command: Command line (string is split with shlex) or argv list
            timeout: Per-save timeout in seconds (None waits forever)
            env: Base environment (defaults to os.environ)
        """
        argv = shlex.split(command) if isinstance(command, str) else list(command)
        if not argv:
            raise ConfigError("save command must not be empty")
        self.argv = argv
        self.timeout = timeout
        self.env = env

    def build_argv(self, request: SaveRequest) -> list[str]:
        return [*self.argv, *request.paths]

    def build_env(self, request: SaveRequest) -> dict[str, str]:
        env = dict(os.environ if self.env is None else self.env)
        env.update({
            "CACHE_STEP_ID": request.step_id,
            "CACHE_KEY": request.key,
            "CACHE_IS_KEY_UNIQUE": "true" if request.is_key_unique else "false",
            "CACHE_COMPRESSION_LEVEL": str(request.compression_level),
            "CACHE_CUSTOM_TAR_ARGS": shlex.join(request.custom_tar_args),
            "CACHE_VERBOSE": "true" if request.verbose else "false",
        })
        return env

    def save(self, request: SaveRequest) -> None:
        argv = self.build_argv(request)
        logger.debug(f"Running save command for key '{request.key}': {shlex.join(argv)}")

        try:
            result = subprocess.run(
                argv,
                env=self.build_env(request),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise SaveError(request.key, f"save command not found: {argv[0]}")
        except subprocess.TimeoutExpired:
            raise SaveError(request.key, f"save command timed out after {self.timeout}s")

        if request.verbose and result.stdout:
            logger.debug(f"[{request.key}] {result.stdout.rstrip()}")

        if result.returncode != 0:
            detail = truncate_message(result.stderr or result.stdout or "")
            message = f"save command exited with status {result.returncode}"
            if detail:
                message = f"{message}: {detail}"
            raise SaveError(request.key, message)
