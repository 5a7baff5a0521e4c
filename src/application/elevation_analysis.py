"""Elevation analysis use case.

polygon + resolution -> sample_grid -> ElevationLookup (chunked) -> compute_grid

The lookup is the only blocking boundary; everything else is pure domain
computation. Lookups are chunked to the provider's batch limit and
reassembled in input order, and the whole lookup phase shares one deadline.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Iterable, Mapping, Sequence
from typing import Union

from pydantic import ValidationError

from application.config import EngineConfig
from application.timeouts import call_with_timeout
from domain.errors import InvalidInputError, LookupFailedError, UpstreamTimeoutError
from domain.geometry.value_objects import LatLng, Polygon
from domain.terrain.repositories import ElevationLookup
from domain.terrain.services import compute_grid, sample_grid, summarize_slopes
from domain.terrain.value_objects import ElevationGrid, ElevationPoint, SlopeSummary

logger = logging.getLogger(__name__)

PolygonInput = Union[Polygon, Sequence[Union[LatLng, Mapping[str, float]]]]


def coerce_polygon(polygon: PolygonInput) -> Polygon:
    """Validate caller input into a Polygon.

    Accepts a Polygon, LatLng values or {"lat": ..., "lng": ...} mappings.

    Raises:
        InvalidInputError: fewer than 3 distinct vertices or bad coordinates
    """
    if isinstance(polygon, Polygon):
        return polygon
    try:
        return Polygon.of(polygon)
    except (ValidationError, TypeError) as e:
        raise InvalidInputError(f"Invalid polygon: {e}") from e


def _chunks(points: Sequence[LatLng], size: int) -> Iterable[Sequence[LatLng]]:
    for start in range(0, len(points), size):
        yield points[start : start + size]


class ElevationAnalysisService:
    """Computes slope/aspect grids for polygons.

    Parameters
    ----------
    lookup: ElevationLookup
        Elevation provider port.
    config: EngineConfig | None
        Batch size, default timeout and lattice limits.
    """

    def __init__(
        self, lookup: ElevationLookup, config: EngineConfig | None = None
    ) -> None:
        self._lookup = lookup
        self._config = config or EngineConfig()

    def compute_elevation_grid(
        self,
        polygon: PolygonInput,
        resolution_m: float,
        timeout_s: float | None = None,
    ) -> ElevationGrid:
        """Sample polygon at resolution_m and derive per-cell slope/aspect.

        Args:
            polygon: Area outline, implicitly closed
            resolution_m: Sample spacing in meters (> 0)
            timeout_s: Bound on the whole lookup phase; defaults to config

        Raises:
            InvalidInputError: < 3 vertices, resolution <= 0, zero-area polygon
            LookupFailedError: The elevation provider reported failure
            UpstreamTimeoutError: The lookup phase exceeded timeout_s
        """
        if isinstance(resolution_m, bool) or not isinstance(resolution_m, (int, float)):
            raise InvalidInputError(
                f"Resolution must be a number, got {resolution_m!r}"
            )
        if not math.isfinite(resolution_m) or resolution_m <= 0:
            raise InvalidInputError(f"Resolution must be positive, got {resolution_m}")
        shape = coerce_polygon(polygon)

        points = sample_grid(
            shape, resolution_m, max_points=self._config.max_grid_points
        )
        if not points:
            logger.info(
                "No lattice points fall inside the polygon at %.2fm", resolution_m
            )
            return compute_grid([], resolution_m)

        timeout = self._config.lookup_timeout_s if timeout_s is None else timeout_s
        elevations = self._lookup_all(points, timeout)
        grid = compute_grid(elevations, resolution_m)
        logger.info(
            "Elevation grid: %d points sampled, %d cells at %.2fm",
            len(points),
            len(grid.cells),
            resolution_m,
        )
        return grid

    def compute_slope_summary(
        self,
        polygon: PolygonInput,
        resolution_m: float,
        threshold_deg: float | None = None,
        timeout_s: float | None = None,
    ) -> tuple[ElevationGrid, SlopeSummary]:
        """Grid plus its flat/steep split (threshold defaults to config)."""
        grid = self.compute_elevation_grid(polygon, resolution_m, timeout_s)
        threshold = (
            self._config.steep_slope_threshold_deg
            if threshold_deg is None
            else threshold_deg
        )
        return grid, summarize_slopes(grid, threshold)

    def _lookup_all(
        self, points: Sequence[LatLng], timeout_s: float
    ) -> list[ElevationPoint]:
        deadline = time.monotonic() + timeout_s
        batch = self._config.max_batch_size
        results: list[ElevationPoint] = []

        for n, chunk in enumerate(_chunks(points, batch)):
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise UpstreamTimeoutError("elevation lookup", timeout_s)
            logger.debug("Elevation lookup chunk %d: %d points", n, len(chunk))
            chunk_result = call_with_timeout(
                lambda c=chunk, t=remaining: self._lookup.elevations(c, timeout_s=t),
                timeout_s=remaining,
                operation="elevation lookup",
            )
            if len(chunk_result) != len(chunk):
                raise LookupFailedError(
                    f"Elevation lookup returned {len(chunk_result)} results "
                    f"for {len(chunk)} points"
                )
            results.extend(chunk_result)
        return results
