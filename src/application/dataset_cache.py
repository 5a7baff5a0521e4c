"""TTL cache for the boundary dataset and its spatial index.

State machine:
    Empty --fetch ok--> Valid --age >= ttl--> Stale --next access--> Valid
    A failed fetch leaves whatever snapshot was installed untouched and
    propagates the error to every caller waiting on that fetch.

Snapshots are immutable and swapped in with a single reference assignment,
after the index is built, so readers never see a collection paired with an
index from another fetch. Refreshes are single-flight: concurrent callers
observing a stale cache share one fetch and get the same result or error.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future
from typing import Any

from pydantic import BaseModel, ConfigDict

from application.config import DEFAULT_DATASET_TTL_S
from application.timeouts import call_with_timeout
from domain.boundaries.repositories import BoundaryDatasetSource
from domain.boundaries.services import LinearBoundsIndex, build_index
from domain.boundaries.value_objects import FeatureCollection, parse_feature_collection

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class CacheSnapshot(BaseModel):
    """One fetched collection with the index built from it (Value Object)."""

    collection: FeatureCollection
    index: LinearBoundsIndex
    fetched_at: float  # clock() reading at install time

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class DatasetCache:
    """Process-wide cache service for one boundary dataset.

    Parameters
    ----------
    source: BoundaryDatasetSource
        Fetch collaborator returning the raw GeoJSON payload.
    ttl_s: float
        Snapshot lifetime; a snapshot aged >= ttl_s is stale.
    clock: Callable[[], float]
        Monotonic seconds; injectable for tests.
    timeout_s: float | None
        Bound on a single fetch, surfaced as UpstreamTimeoutError.
    """

    def __init__(
        self,
        source: BoundaryDatasetSource,
        *,
        ttl_s: float = DEFAULT_DATASET_TTL_S,
        clock: Clock = time.monotonic,
        timeout_s: float | None = None,
    ) -> None:
        if ttl_s <= 0:
            raise ValueError(f"ttl_s must be positive: {ttl_s}")
        self._source = source
        self._ttl_s = ttl_s
        self._clock = clock
        self._timeout_s = timeout_s
        self._lock = threading.Lock()
        self._snapshot: CacheSnapshot | None = None
        self._inflight: Future[CacheSnapshot] | None = None

    @property
    def ttl_s(self) -> float:
        return self._ttl_s

    @property
    def current(self) -> CacheSnapshot | None:
        """Installed snapshot, fresh or stale, without triggering a fetch."""
        return self._snapshot

    def is_stale(self, now: float | None = None) -> bool:
        """True when empty or when the snapshot has reached its TTL."""
        snapshot = self._snapshot
        if snapshot is None:
            return True
        now = self._clock() if now is None else now
        return now - snapshot.fetched_at >= self._ttl_s

    def snapshot(self) -> CacheSnapshot:
        """Fresh snapshot, fetching first if the cache is empty or stale.

        Raises:
            LookupFailedError, UpstreamTimeoutError, InvalidInputError: the
                fetch (or validation of its payload) failed
        """
        snapshot = self._snapshot
        if snapshot is not None and not self.is_stale():
            return snapshot
        return self._refresh(force=False)

    def get(self) -> FeatureCollection:
        return self.snapshot().collection

    def refresh(self) -> CacheSnapshot:
        """Fetch now regardless of age; keeps the old snapshot on failure."""
        return self._refresh(force=True)

    def invalidate(self) -> None:
        """Drop the snapshot; the next access fetches."""
        with self._lock:
            self._snapshot = None
        logger.info("Boundary dataset cache invalidated")

    def stats(self) -> dict[str, Any]:
        snapshot = self._snapshot
        return {
            "data_loaded": snapshot is not None,
            "feature_count": len(snapshot.collection.features) if snapshot else 0,
            "age_s": self._clock() - snapshot.fetched_at if snapshot else None,
            "stale": self.is_stale(),
        }

    # -----------------------------------------------------------------------
    # Refresh (single-flight)
    # -----------------------------------------------------------------------
    def _refresh(self, *, force: bool) -> CacheSnapshot:
        with self._lock:
            if not force and self._snapshot is not None and not self.is_stale():
                # Another caller finished a refresh while we waited for the lock
                return self._snapshot
            owner = self._inflight is None
            if owner:
                self._inflight = Future()
            future = self._inflight

        if not owner:
            return future.result()

        try:
            snapshot = self._load()
        except BaseException as e:
            with self._lock:
                self._inflight = None
            future.set_exception(e)
            raise

        with self._lock:
            self._snapshot = snapshot
            self._inflight = None
        future.set_result(snapshot)
        return snapshot

    def _load(self) -> CacheSnapshot:
        started = time.monotonic()
        try:
            payload = call_with_timeout(
                lambda: self._source.fetch(timeout_s=self._timeout_s),
                timeout_s=self._timeout_s,
                operation="boundary dataset fetch",
            )
            collection = parse_feature_collection(payload)
        except Exception as e:
            logger.error("Boundary dataset refresh failed: %s", e)
            raise

        index = build_index(collection.features)
        logger.info(
            "Boundary dataset %r refreshed: %d features indexed in %.2fs",
            collection.name,
            len(collection.features),
            time.monotonic() - started,
        )
        return CacheSnapshot(
            collection=collection, index=index, fetched_at=self._clock()
        )
