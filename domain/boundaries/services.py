"""Boundaries Bounded Context - Domain Services.

Spatial index, containment query and viewport filter over a validated
FeatureCollection. NO I/O operations - datasets are supplied by the
application layer (see `application/dataset_cache.py`).

The index contract (`SpatialIndex`) only exposes candidate pruning; the
linear bounding-box index below can be swapped for a hierarchical tree
without touching query callers.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from domain.boundaries.value_objects import AuthorityInfo, Feature
from domain.geometry.services import point_in_rings
from domain.geometry.value_objects import Bounds, LatLng


# ---------------------------------------------------------------------------
# Index Entries
# ---------------------------------------------------------------------------
class SpatialIndexEntry(BaseModel):
    """Bounding box of one feature plus its position in the collection.

    Entries belong to the snapshot that built them and are rebuilt whenever
    the collection is refreshed.
    """

    bounds: Bounds
    feature: Feature
    index: int

    model_config = ConfigDict(frozen=True)


class SpatialIndex(Protocol):
    """Candidate-pruning contract shared by all index implementations."""

    @property
    def entries(self) -> Sequence[SpatialIndexEntry]: ...

    def candidates(self, point: LatLng) -> Iterator[SpatialIndexEntry]:
        """Entries whose bounding box contains point (inclusive)."""
        ...

    def intersecting(self, bounds: Bounds) -> Iterator[SpatialIndexEntry]:
        """Entries whose bounding box overlaps bounds, in collection order."""
        ...


class LinearBoundsIndex:
    """One bounding box per feature, scanned linearly.

    Adequate for datasets of a few thousand features (e.g. the ~400 local
    authority districts of the UK).
    """

    def __init__(self, entries: Iterable[SpatialIndexEntry]) -> None:
        self._entries = tuple(entries)

    @property
    def entries(self) -> tuple[SpatialIndexEntry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def candidates(self, point: LatLng) -> Iterator[SpatialIndexEntry]:
        return (e for e in self._entries if e.bounds.contains(point))

    def intersecting(self, bounds: Bounds) -> Iterator[SpatialIndexEntry]:
        return (e for e in self._entries if e.bounds.intersects(bounds))


# ---------------------------------------------------------------------------
# Build
# ---------------------------------------------------------------------------
def feature_bounds(feature: Feature) -> Bounds:
    """Bounding box scanning every ring of every polygon of the feature."""
    return feature.bounds()


def build_index(features: Sequence[Feature]) -> LinearBoundsIndex:
    return LinearBoundsIndex(
        SpatialIndexEntry(bounds=feature_bounds(feature), feature=feature, index=i)
        for i, feature in enumerate(features)
    )


# ---------------------------------------------------------------------------
# Containment
# ---------------------------------------------------------------------------
def feature_contains(feature: Feature, point: LatLng) -> bool:
    """Exact even-odd point-in-polygon test over all rings of the feature."""
    return point_in_rings(point, feature.geometry.rings())


def query_containment(index: SpatialIndex, point: LatLng) -> Feature | None:
    """First feature (index order) whose geometry contains point.

    The bounding box is only a pre-filter: a candidate is returned only after
    the exact polygon test succeeds.
    """
    for entry in index.candidates(point):
        if feature_contains(entry.feature, point):
            return entry.feature
    return None


# ---------------------------------------------------------------------------
# Viewport
# ---------------------------------------------------------------------------
def filter_by_viewport(features: Sequence[Feature], bounds: Bounds) -> list[Feature]:
    """Features whose bounding box overlaps bounds. Pure and order-preserving."""
    return [f for f in features if feature_bounds(f).intersects(bounds)]


def filter_index_by_viewport(index: SpatialIndex, bounds: Bounds) -> list[Feature]:
    """Same result as filter_by_viewport, reusing precomputed entry bounds."""
    return [e.feature for e in index.intersecting(bounds)]


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------
def find_by_reference(features: Iterable[Feature], reference: str) -> Feature | None:
    return next((f for f in features if f.properties.reference == reference), None)


def search_by_name(features: Iterable[Feature], query: str) -> list[AuthorityInfo]:
    """Case-insensitive substring match on feature names."""
    needle = query.lower()
    return [
        AuthorityInfo.from_feature(f)
        for f in features
        if needle in f.properties.name.lower()
    ]
