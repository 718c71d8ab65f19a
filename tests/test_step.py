"""End-to-end tests for run_step (input -> parse -> concurrent save)."""

import logging
from unittest.mock import MagicMock

import pytest

from multikey_cache.config import SpecLimits, StepInput
from multikey_cache.errors import AllSavesFailedError, NoValidEntriesError
from multikey_cache.step import run_step


def make_input(text, **kwargs):
    return StepInput(verbose=kwargs.pop("verbose", False), key_path_pairs=text, **kwargs)


def test_one_of_two_fails_is_success(fake_store_factory):
    store = fake_store_factory(fail_keys={"a"})
    outcome = run_step(make_input("a = x\nb = y,z"), store)

    assert outcome.success is True
    assert outcome.attempted == 2
    assert outcome.failed_keys == {"a"}
    b_request = next(r for r in store.requests if r.key == "b")
    assert b_request.paths == ("y", "z")


def test_single_failing_entry_is_failure(fake_store_factory):
    store = fake_store_factory(fail_keys={"a"})
    with pytest.raises(AllSavesFailedError):
        run_step(make_input("a = x"), store)


def test_no_valid_entries_launches_no_saves():
    store = MagicMock()
    with pytest.raises(NoValidEntriesError):
        run_step(make_input("not a pair\nalso = "), store)
    store.save.assert_not_called()


def test_tar_args_are_tokenized_once(fake_store_factory):
    store = fake_store_factory()
    run_step(make_input("a = x", custom_tar_args="  --exclude   *.tmp ", compression_level=12), store)

    request = store.requests[0]
    assert request.custom_tar_args == ("--exclude", "*.tmp")
    assert request.compression_level == 12


def test_unique_marker_reaches_store(fake_store_factory):
    store = fake_store_factory()
    run_step(make_input("[u] a = x\nb = y"), store)

    uniqueness = {r.key: r.is_key_unique for r in store.requests}
    assert uniqueness == {"a": True, "b": False}


def test_custom_limits(fake_store_factory):
    store = fake_store_factory()
    outcome = run_step(make_input("a = x\nb = y\nc = z"), store, SpecLimits(key_limit=2))
    assert outcome.attempted == 2
    assert store.saved_keys == {"a", "b"}


def test_verbose_enables_debug_logging(fake_store_factory, caplog):
    store = fake_store_factory()
    with caplog.at_level(logging.DEBUG, logger="multikey_cache"):
        run_step(make_input("a = x", verbose=True), store)

    assert logging.getLogger("multikey_cache").level == logging.DEBUG
    assert "Parsed key 'a'" in caplog.text


def test_inputs_are_logged(fake_store_factory, caplog):
    with caplog.at_level(logging.INFO, logger="multikey_cache"):
        run_step(make_input("a = x\nb = y"), fake_store_factory())

    assert "- verbose: False" in caplog.text
    assert "- key_path_pairs:" in caplog.text
    assert "    b = y" in caplog.text
