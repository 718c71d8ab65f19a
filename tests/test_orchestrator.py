"""Tests for the concurrent save orchestrator.

Tests cover:
- One save per entry with the request fields passed through
- Partial-failure policy (some failures succeed, all failures fail)
- Order-independent outcome under randomized completion order
- Stores raising arbitrary exceptions
"""

import logging
import sys
import threading

import pytest

from multikey_cache.errors import AllSavesFailedError
from multikey_cache.orchestrator import STEP_ID, build_requests, save_entries
from multikey_cache.schemas import CacheEntrySpec, SaveRequest
from multikey_cache.stores import CacheStore


def make_entries(*keys, unique=()):
    return {
        key: CacheEntrySpec(key=key, paths=(f"{key}/dir",), is_unique=key in unique)
        for key in keys
    }


class TestBuildRequests:
    """Tests for SaveRequest construction."""

    def test_one_request_per_entry(self):
        requests = build_requests(
            make_entries("a", "b", unique=("b",)),
            verbose=True,
            compression_level=7,
            custom_tar_args=["--exclude", "*.log"],
        )

        assert requests == [
            SaveRequest(STEP_ID, True, "a", ("a/dir",), False, 7, ("--exclude", "*.log")),
            SaveRequest(STEP_ID, True, "b", ("b/dir",), True, 7, ("--exclude", "*.log")),
        ]

    def test_step_id_is_multikey_save_cache(self):
        assert STEP_ID == "multikey-save-cache"


class TestSaveEntries:
    """Tests for save_entries."""

    def test_all_succeed(self, fake_store):
        outcome = save_entries(make_entries("a", "b", "c"), fake_store)

        assert outcome.attempted == 3
        assert outcome.failures == []
        assert outcome.success is True
        assert fake_store.saved_keys == {"a", "b", "c"}
        assert len(fake_store.requests) == 3

    def test_passes_options_to_store(self, fake_store):
        save_entries(
            make_entries("a", unique=("a",)),
            fake_store,
            verbose=True,
            compression_level=19,
            custom_tar_args=("--zstd",),
        )

        request = fake_store.requests[0]
        assert request.is_key_unique is True
        assert request.verbose is True
        assert request.compression_level == 19
        assert request.custom_tar_args == ("--zstd",)
        assert request.step_id == STEP_ID

    def test_partial_failure_succeeds(self, fake_store_factory, caplog):
        store = fake_store_factory(fail_keys={"a"})
        with caplog.at_level(logging.WARNING, logger="multikey_cache"):
            outcome = save_entries(make_entries("a", "b"), store)

        assert outcome.success is True
        assert outcome.attempted == 2
        assert outcome.succeeded == 1
        assert outcome.failed_keys == {"a"}
        assert "save failures" in caplog.text
        assert "upload failed for a" in caplog.text

    def test_all_fail_raises(self, fake_store_factory):
        store = fake_store_factory(fail_keys={"a", "b"})
        with pytest.raises(AllSavesFailedError) as exc_info:
            save_entries(make_entries("a", "b"), store)

        outcome = exc_info.value.outcome
        assert outcome.attempted == 2
        assert outcome.failed_keys == {"a", "b"}
        assert store.saved_keys == {"a", "b"}

    def test_single_entry_failure_raises(self, fake_store_factory):
        store = fake_store_factory(fail_keys={"a"})
        with pytest.raises(AllSavesFailedError):
            save_entries(make_entries("a"), store)

    def test_empty_entries_attempts_nothing(self, fake_store):
        outcome = save_entries({}, fake_store)
        assert outcome.attempted == 0
        assert fake_store.requests == []

    def test_generic_exception_counts_as_failure(self):
        class ExplodingStore(CacheStore):
            def save(self, request):
                if request.key == "bad":
                    raise RuntimeError("disk full")

        outcome = save_entries(make_entries("bad", "good"), ExplodingStore())
        assert outcome.failures[0].key == "bad"
        assert outcome.failures[0].error == "disk full"

    def test_exception_without_message_uses_type_name(self):
        class SilentStore(CacheStore):
            def save(self, request):
                raise ValueError()

        with pytest.raises(AllSavesFailedError) as exc_info:
            save_entries(make_entries("a"), SilentStore())
        assert exc_info.value.outcome.failures[0].error == "ValueError"

    def test_system_exit_in_store_is_a_failure(self):
        class ExitingStore(CacheStore):
            def save(self, request):
                sys.exit(3)

        with pytest.raises(AllSavesFailedError) as exc_info:
            save_entries(make_entries("a"), ExitingStore())

        outcome = exc_info.value.outcome
        assert outcome.failed_keys == {"a"}
        assert outcome.failures[0].error == "SystemExit: 3"

    def test_system_exit_for_one_entry_is_partial_failure(self):
        class ExitingStore(CacheStore):
            def save(self, request):
                if request.key == "bad":
                    sys.exit(3)

        outcome = save_entries(make_entries("bad", "good"), ExitingStore())

        assert outcome.success is True
        assert outcome.failed_keys == {"bad"}
        assert outcome.succeeded == 1

    def test_saves_run_concurrently(self):
        entries = make_entries(*[f"k{i}" for i in range(5)])
        barrier = threading.Barrier(len(entries), timeout=5)

        class BarrierStore(CacheStore):
            def save(self, request):
                # Only passes if all saves are in flight at the same time
                barrier.wait()

        outcome = save_entries(entries, BarrierStore())
        assert outcome.failures == []

    def test_slow_failure_does_not_block_others(self, fake_store_factory):
        store = fake_store_factory(fail_keys={"k0"}, jitter=0.05, seed=1)
        outcome = save_entries(make_entries(*[f"k{i}" for i in range(10)]), store)

        assert outcome.attempted == 10
        assert outcome.failed_keys == {"k0"}
        assert len(store.requests) == 10


class TestOrderIndependence:
    """Outcome classification does not depend on completion order."""

    @pytest.mark.parametrize("seed", range(5))
    def test_partial_failure_classification_is_stable(self, fake_store_factory, seed):
        keys = [f"k{i}" for i in range(8)]
        store = fake_store_factory(fail_keys={"k1", "k4", "k6"}, jitter=0.02, seed=seed)

        outcome = save_entries(make_entries(*keys), store)

        assert outcome.success is True
        assert outcome.attempted == 8
        assert outcome.failed_keys == {"k1", "k4", "k6"}

    @pytest.mark.parametrize("seed", range(5))
    def test_total_failure_classification_is_stable(self, fake_store_factory, seed):
        keys = [f"k{i}" for i in range(6)]
        store = fake_store_factory(fail_keys=set(keys), jitter=0.02, seed=seed)

        with pytest.raises(AllSavesFailedError) as exc_info:
            save_entries(make_entries(*keys), store)
        assert exc_info.value.outcome.failed == 6
