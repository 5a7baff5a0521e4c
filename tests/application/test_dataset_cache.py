"""Tests for the boundary dataset TTL cache.

Time is driven by FakeClock; the dataset source is FakeDatasetSource, so no
test touches the network or the filesystem.
"""

from __future__ import annotations

import logging
import threading

import pytest

from application.dataset_cache import DatasetCache
from domain.boundaries.services import query_containment
from domain.errors import InvalidInputError, LookupFailedError, UpstreamTimeoutError
from domain.geometry.value_objects import LatLng
from tests.conftest_utils import (
    FakeDatasetSource,
    collection_payload,
    polygon_feature,
    square_ring,
)

TTL = 60.0


def _payload(name: str = "v1"):
    return collection_payload(
        polygon_feature(f"{name}-district", "E1", [square_ring(0, 0, 1, 1)]), name=name
    )


# ===========================================================================
# TTL
# ===========================================================================
def test_first_access_fetches_and_indexes(clock):
    source = FakeDatasetSource(_payload())
    cache = DatasetCache(source, ttl_s=TTL, clock=clock)

    snapshot = cache.snapshot()

    assert source.calls == 1
    assert snapshot.collection.name == "v1"
    assert snapshot.fetched_at == clock.now
    found = query_containment(snapshot.index, LatLng(lat=0.5, lng=0.5))
    assert found == snapshot.collection.features[0]


def test_fresh_snapshot_is_reused(clock):
    source = FakeDatasetSource(_payload())
    cache = DatasetCache(source, ttl_s=TTL, clock=clock)

    first = cache.snapshot()
    clock.advance(TTL - 1)
    assert cache.snapshot() is first
    assert cache.get() is first.collection
    assert source.calls == 1


def test_stale_snapshot_triggers_refresh(clock):
    source = FakeDatasetSource(_payload("v1"), _payload("v2"))
    cache = DatasetCache(source, ttl_s=TTL, clock=clock)

    cache.snapshot()
    clock.advance(TTL)  # age == ttl counts as stale
    assert cache.is_stale()

    assert cache.get().name == "v2"
    assert source.calls == 2
    assert not cache.is_stale()


def test_failed_refresh_keeps_previous_snapshot(clock, caplog):
    source = FakeDatasetSource(_payload("v1"), LookupFailedError("boom", status=503))
    cache = DatasetCache(source, ttl_s=TTL, clock=clock)
    first = cache.snapshot()
    clock.advance(TTL + 1)

    with caplog.at_level(logging.ERROR, logger="application.dataset_cache"):
        with pytest.raises(LookupFailedError) as exc_info:
            cache.snapshot()

    assert exc_info.value.status == 503
    assert cache.current is first
    assert "refresh failed" in caplog.text


def test_failure_on_empty_cache_propagates(clock):
    cache = DatasetCache(FakeDatasetSource(LookupFailedError("down")), clock=clock)

    with pytest.raises(LookupFailedError):
        cache.snapshot()
    assert cache.current is None
    assert cache.is_stale()


def test_malformed_payload_is_rejected_and_not_installed(clock):
    source = FakeDatasetSource({"type": "FeatureCollection", "features": [{}]})
    cache = DatasetCache(source, ttl_s=TTL, clock=clock)

    with pytest.raises(InvalidInputError):
        cache.snapshot()
    assert cache.current is None


def test_retry_after_failure_fetches_again(clock):
    source = FakeDatasetSource(LookupFailedError("flaky"), _payload())
    cache = DatasetCache(source, ttl_s=TTL, clock=clock)

    with pytest.raises(LookupFailedError):
        cache.snapshot()
    assert cache.snapshot().collection.name == "v1"
    assert source.calls == 2


def test_fetch_timeout_surfaces_upstream_timeout(clock):
    source = FakeDatasetSource(_payload(), delay_s=0.5)
    cache = DatasetCache(source, ttl_s=TTL, clock=clock, timeout_s=0.05)

    with pytest.raises(UpstreamTimeoutError) as exc_info:
        cache.snapshot()
    assert exc_info.value.timeout_s == 0.05
    assert cache.current is None


def test_non_positive_ttl_rejected():
    with pytest.raises(ValueError):
        DatasetCache(FakeDatasetSource(_payload()), ttl_s=0)


# ===========================================================================
# Explicit refresh / invalidate / stats
# ===========================================================================
def test_refresh_fetches_even_when_fresh(clock):
    source = FakeDatasetSource(_payload("v1"), _payload("v2"))
    cache = DatasetCache(source, ttl_s=TTL, clock=clock)
    cache.snapshot()

    assert cache.refresh().collection.name == "v2"
    assert source.calls == 2


def test_invalidate_forces_next_fetch(clock):
    source = FakeDatasetSource(_payload())
    cache = DatasetCache(source, ttl_s=TTL, clock=clock)
    cache.snapshot()

    cache.invalidate()
    assert cache.current is None
    cache.snapshot()
    assert source.calls == 2


def test_stats(clock):
    cache = DatasetCache(FakeDatasetSource(_payload()), ttl_s=TTL, clock=clock)
    assert cache.stats() == {
        "data_loaded": False,
        "feature_count": 0,
        "age_s": None,
        "stale": True,
    }

    cache.snapshot()
    clock.advance(5)
    assert cache.stats() == {
        "data_loaded": True,
        "feature_count": 1,
        "age_s": 5,
        "stale": False,
    }


# ===========================================================================
# Concurrency
# ===========================================================================
def _run_concurrently(n: int, fn):
    barrier = threading.Barrier(n)
    results: list = [None] * n
    errors: list = [None] * n

    def worker(i: int) -> None:
        barrier.wait()
        try:
            results[i] = fn()
        except Exception as e:  # collected for assertions
            errors[i] = e

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    return results, errors


@pytest.mark.slow
def test_concurrent_callers_share_one_fetch(clock):
    source = FakeDatasetSource(_payload(), delay_s=0.2)
    cache = DatasetCache(source, ttl_s=TTL, clock=clock)

    results, errors = _run_concurrently(8, cache.snapshot)

    assert errors == [None] * 8
    assert source.calls == 1
    assert all(r is results[0] for r in results)


@pytest.mark.slow
def test_concurrent_callers_share_one_failure(clock):
    source = FakeDatasetSource(LookupFailedError("down"), delay_s=0.2)
    cache = DatasetCache(source, ttl_s=TTL, clock=clock)

    results, errors = _run_concurrently(8, cache.snapshot)

    assert source.calls == 1
    assert results == [None] * 8
    assert all(isinstance(e, LookupFailedError) for e in errors)


@pytest.mark.slow
def test_concurrent_callers_after_expiry_share_one_refresh(clock):
    source = FakeDatasetSource(_payload("v1"), _payload("v2"), delay_s=0.2)
    cache = DatasetCache(source, ttl_s=TTL, clock=clock)
    first = cache.snapshot()
    clock.advance(TTL)

    results, errors = _run_concurrently(8, cache.snapshot)

    assert errors == [None] * 8
    assert source.calls == 2
    assert all(r is results[0] for r in results)
    assert results[0] is not first
    assert results[0].collection.name == "v2"
