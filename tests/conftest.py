import logging
import random
import threading
import time

import pytest

from multikey_cache.errors import SaveError
from multikey_cache.stores import CacheStore


class FakeCacheStore(CacheStore):
    """Records every save and fails the keys it is told to fail."""

    def __init__(self, fail_keys=(), jitter: float = 0.0, seed=None):
        self.fail_keys = set(fail_keys)
        self.jitter = jitter
        self.requests = []
        self.threads = set()
        self._lock = threading.Lock()
        self._random = random.Random(seed)

    def save(self, request):
        if self.jitter:
            with self._lock:
                delay = self._random.uniform(0, self.jitter)
            time.sleep(delay)
        with self._lock:
            self.requests.append(request)
            self.threads.add(threading.get_ident())
        if request.key in self.fail_keys:
            raise SaveError(request.key, f"upload failed for {request.key}")

    @property
    def saved_keys(self):
        return {r.key for r in self.requests}


@pytest.fixture
def fake_store():
    return FakeCacheStore()


@pytest.fixture
def fake_store_factory():
    return FakeCacheStore


@pytest.fixture(autouse=True)
def reset_package_logger():
    # CliRunner swaps sys.stderr; drop handlers bound to closed streams
    yield
    logger = logging.getLogger("multikey_cache")
    logger.handlers = []
    logger.setLevel(logging.NOTSET)
