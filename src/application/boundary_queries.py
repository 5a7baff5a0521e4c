"""Boundary query use cases over the cached administrative-boundary dataset.

- query_containment(lat, lng): which authority contains a point
- list_features(viewport): whole collection, or features overlapping a viewport

When a refresh fails but an older snapshot is still installed, queries are
answered from that snapshot (with a warning) instead of failing.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from typing import Any, Union

from pydantic import ValidationError

from application.dataset_cache import CacheSnapshot, DatasetCache
from domain.boundaries.services import (
    filter_index_by_viewport,
    find_by_reference,
    query_containment,
    search_by_name,
)
from domain.boundaries.value_objects import (
    AuthorityInfo,
    ContainmentResult,
    Feature,
    FeatureCollection,
)
from domain.errors import DatasetUnavailableError, GeoEngineError, InvalidInputError
from domain.geometry.value_objects import Bounds, LatLng

logger = logging.getLogger(__name__)

ViewportInput = Union[Bounds, Mapping[str, Any], str, bytes, None]


def parse_viewport(viewport: ViewportInput) -> Bounds | None:
    """Parse a viewport given as Bounds, mapping or JSON object string.

    Malformed input is logged and yields None (no filtering).
    """
    if viewport is None or isinstance(viewport, Bounds):
        return viewport
    try:
        if isinstance(viewport, (str, bytes)):
            viewport = json.loads(viewport)
        return Bounds.model_validate(viewport)
    except (ValidationError, json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        logger.warning("Ignoring invalid viewport parameter: %s", e)
        return None


def _coordinate(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidInputError(f"{name} must be finite, got {value}")
    return float(value)


class BoundaryQueryService:
    """Containment and viewport queries backed by a DatasetCache."""

    def __init__(self, cache: DatasetCache) -> None:
        self._cache = cache

    def query_containment(self, lat: float, lng: float) -> ContainmentResult:
        """Authority whose boundary contains (lat, lng).

        Raises:
            InvalidInputError: Non-numeric or out-of-range coordinates
            DatasetUnavailableError: No dataset could be obtained
        """
        try:
            point = LatLng(lat=_coordinate(lat, "lat"), lng=_coordinate(lng, "lng"))
        except ValidationError as e:
            raise InvalidInputError(f"Invalid coordinates: {e}") from e

        feature = query_containment(self._snapshot().index, point)
        if feature is None:
            return ContainmentResult(found=False, authority=None)
        return ContainmentResult(
            found=True, authority=AuthorityInfo.from_feature(feature)
        )

    def list_features(self, viewport: ViewportInput = None) -> FeatureCollection:
        """Full collection, or only features whose bounds overlap viewport.

        A malformed viewport is ignored and the unfiltered collection returned.
        """
        snapshot = self._snapshot()
        bounds = parse_viewport(viewport)
        if bounds is None:
            return snapshot.collection
        features = filter_index_by_viewport(snapshot.index, bounds)
        logger.debug(
            "Viewport filter kept %d of %d features",
            len(features),
            len(snapshot.collection.features),
        )
        return snapshot.collection.with_features(features)

    def find_by_reference(self, reference: str) -> Feature | None:
        return find_by_reference(self._snapshot().collection.features, reference)

    def search_authorities(self, query: str) -> list[AuthorityInfo]:
        return search_by_name(self._snapshot().collection.features, query)

    def refresh(self) -> FeatureCollection:
        """Force a refetch; the previous snapshot survives a failed fetch."""
        return self._cache.refresh().collection

    def _snapshot(self) -> CacheSnapshot:
        try:
            return self._cache.snapshot()
        except GeoEngineError as e:
            previous = self._cache.current
            if previous is None:
                raise DatasetUnavailableError(
                    f"Boundary dataset unavailable: {e}"
                ) from e
            logger.warning(
                "Boundary dataset refresh failed (%s); serving previous snapshot "
                "with %d features",
                e,
                len(previous.collection.features),
            )
            return previous
