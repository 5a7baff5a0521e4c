"""Terrain Bounded Context - Domain Services.

Pure domain logic for terrain calculations.
NO I/O operations - elevations are obtained by the application layer through
the ElevationLookup port (`domain/terrain/repositories.py`).

Pipeline:
    polygon + resolution -> sample_grid -> [ElevationLookup] -> compute_grid
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from domain.errors import InvalidInputError
from domain.geometry.services import geodesic_distance, point_in_ring, ring_area
from domain.geometry.value_objects import Bounds, LatLng, Polygon
from domain.terrain.value_objects import (
    ElevationGrid,
    ElevationPoint,
    GridCell,
    SlopeSummary,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
# Lattice coordinates are matched after rounding to 6 decimals (~0.1 m)
LATTICE_DECIMALS = 6

# Upper bound on lattice size; guards against absurdly fine resolutions
DEFAULT_MAX_GRID_POINTS = 250_000

# Slope above which a cell counts as steep
DEFAULT_STEEP_SLOPE_DEG = 15.0

# Shoelace areas below this (square degrees) are treated as zero-area
MIN_RING_AREA_DEG2 = 1e-18


# ---------------------------------------------------------------------------
# GridSampler
# ---------------------------------------------------------------------------
def sample_grid(
    polygon: Polygon,
    resolution_m: float,
    max_points: int = DEFAULT_MAX_GRID_POINTS,
) -> list[LatLng]:
    """Regular lattice of points inside a polygon.

    The lattice covers the polygon's bounding box with
    ceil(height_m / resolution_m) + 1 rows and ceil(width_m / resolution_m) + 1
    columns, inclusive of both edges. Steps are uniform in degrees, so the
    metric spacing is only approximately resolution_m (fine while the
    resolution is much smaller than the box).

    Args:
        polygon: Area to sample (implicitly closed)
        resolution_m: Target sample spacing in meters
        max_points: Refuse lattices larger than this

    Returns:
        Points inside the polygon, south to north then west to east

    Raises:
        InvalidInputError: resolution_m <= 0 or not finite, zero-area polygon,
            or lattice larger than max_points
    """
    if not math.isfinite(resolution_m) or resolution_m <= 0:
        raise InvalidInputError(f"Resolution must be positive, got {resolution_m}")

    ring = polygon.xy()
    bounds = polygon.bounds()
    if bounds.height_deg == 0 or bounds.width_deg == 0:
        raise InvalidInputError("Polygon has a zero-area bounding box")
    if abs(ring_area(ring)) < MIN_RING_AREA_DEG2:
        raise InvalidInputError("Polygon has zero area")

    # Height measured along the west edge, width along the south edge
    southwest = LatLng(lat=bounds.south, lng=bounds.west)
    height_m = geodesic_distance(southwest, LatLng(lat=bounds.north, lng=bounds.west))
    width_m = geodesic_distance(southwest, LatLng(lat=bounds.south, lng=bounds.east))

    lat_steps = max(1, math.ceil(height_m / resolution_m))
    lng_steps = max(1, math.ceil(width_m / resolution_m))

    n_lattice = (lat_steps + 1) * (lng_steps + 1)
    if n_lattice > max_points:
        raise InvalidInputError(
            f"Resolution {resolution_m}m yields {n_lattice} lattice points "
            f"(limit {max_points})"
        )

    lat_step = bounds.height_deg / lat_steps
    lng_step = bounds.width_deg / lng_steps

    points: list[LatLng] = []
    for i in range(lat_steps + 1):
        # Last row and column sit exactly on the bounds, never past them
        lat = bounds.north if i == lat_steps else bounds.south + i * lat_step
        for j in range(lng_steps + 1):
            lng = bounds.east if j == lng_steps else bounds.west + j * lng_step
            if point_in_ring(lng, lat, ring):
                points.append(LatLng(lat=lat, lng=lng))

    logger.debug(
        "Sampled %d of %d lattice points (%dx%d) at %.2fm",
        len(points),
        n_lattice,
        lat_steps + 1,
        lng_steps + 1,
        resolution_m,
    )
    return points


# ---------------------------------------------------------------------------
# SlopeAspectCalculator
# ---------------------------------------------------------------------------
def _lattice(
    points: Sequence[ElevationPoint],
) -> tuple[list[float], list[float], NDArray[np.float64]]:
    """Arrange points on the lattice of their distinct coordinates.

    Returns (lats north->south, lngs west->east, elevations) where the
    elevation array is NaN wherever no value is available.
    """
    lats = sorted(
        {round(p.location.lat, LATTICE_DECIMALS) for p in points}, reverse=True
    )
    lngs = sorted({round(p.location.lng, LATTICE_DECIMALS) for p in points})
    row_of = {lat: i for i, lat in enumerate(lats)}
    col_of = {lng: j for j, lng in enumerate(lngs)}

    z = np.full((len(lats), len(lngs)), np.nan, dtype=np.float64)
    for p in points:
        if p.elevation is None:
            continue
        row = row_of[round(p.location.lat, LATTICE_DECIMALS)]
        col = col_of[round(p.location.lng, LATTICE_DECIMALS)]
        z[row, col] = p.elevation
    return lats, lngs, z


def horn_gradients(
    z: NDArray[np.float64], resolution_m: float
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Horn's method gradients for every interior lattice position.

    Neighbourhood labels (row-major, north row first)::

        a b c
        d e f
        g h i

    Returns (dz_dx, dz_dy), each shaped (rows - 2, cols - 2); NaN wherever one
    of the eight neighbours is missing. The centre value is not used.
    """
    a, b, c = z[:-2, :-2], z[:-2, 1:-1], z[:-2, 2:]
    d, f = z[1:-1, :-2], z[1:-1, 2:]
    g, h, i = z[2:, :-2], z[2:, 1:-1], z[2:, 2:]

    dz_dx = ((c + 2 * f + i) - (a + 2 * d + g)) / (8 * resolution_m)
    dz_dy = ((g + 2 * h + i) - (a + 2 * b + c)) / (8 * resolution_m)
    return dz_dx, dz_dy


def compute_grid(
    points: Sequence[ElevationPoint], resolution_m: float
) -> ElevationGrid:
    """Per-cell slope and aspect from sampled elevations.

    The distinct latitudes (north to south) and longitudes (west to east) of
    the points form the lattice; points need not fill it. Every lattice
    position whose eight neighbours all have elevations yields one cell.
    Positions with any missing neighbour are skipped - no interpolation.

    Aspect is atan2(dz/dy, -dz/dx) in degrees normalised to [0, 360), and
    None for a flat cell (both gradients exactly zero).

    Args:
        points: Elevation samples, typically from sample_grid + lookup
        resolution_m: Spacing used as the Horn denominator

    Returns:
        ElevationGrid, empty when no points were supplied

    Raises:
        InvalidInputError: resolution_m <= 0 or not finite
    """
    if not math.isfinite(resolution_m) or resolution_m <= 0:
        raise InvalidInputError(f"Resolution must be positive, got {resolution_m}")
    if not points:
        return ElevationGrid(cells=(), resolution=resolution_m)

    known = [p.elevation for p in points if p.elevation is not None]
    min_elevation = min(known) if known else None
    max_elevation = max(known) if known else None

    lats, lngs, z = _lattice(points)
    if len(lats) < 3 or len(lngs) < 3:
        return ElevationGrid(
            cells=(),
            resolution=resolution_m,
            min_elevation=min_elevation,
            max_elevation=max_elevation,
        )

    lat_step = lats[0] - lats[1]
    lng_step = lngs[1] - lngs[0]

    dz_dx, dz_dy = horn_gradients(z, resolution_m)
    valid = np.isfinite(dz_dx) & np.isfinite(dz_dy)

    slope = np.degrees(np.arctan(np.hypot(dz_dx, dz_dy)))
    aspect = np.degrees(np.arctan2(dz_dy, -dz_dx))
    aspect = np.where(aspect < 0, aspect + 360.0, aspect)
    # A tiny negative angle plus 360 can round to exactly 360
    aspect = np.where(aspect >= 360.0, 0.0, aspect)
    flat = (dz_dx == 0) & (dz_dy == 0)

    cells: list[GridCell] = []
    for r, c in zip(*np.nonzero(valid)):
        lat = lats[r + 1]
        lng = lngs[c + 1]
        cells.append(
            GridCell(
                bounds=Bounds(
                    north=lat, south=lat - lat_step, west=lng, east=lng + lng_step
                ),
                center=LatLng(lat=lat, lng=lng),
                slope=float(slope[r, c]),
                aspect=None if flat[r, c] else float(aspect[r, c]),
            )
        )

    skipped = valid.size - len(cells)
    if skipped:
        logger.debug(
            "Skipped %d of %d interior cells with incomplete neighbourhoods",
            skipped,
            valid.size,
        )

    return ElevationGrid(
        cells=tuple(cells),
        resolution=resolution_m,
        min_elevation=min_elevation,
        max_elevation=max_elevation,
    )


# ---------------------------------------------------------------------------
# Slope Summary
# ---------------------------------------------------------------------------
def summarize_slopes(
    grid: ElevationGrid, threshold_deg: float = DEFAULT_STEEP_SLOPE_DEG
) -> SlopeSummary:
    """Split cells into flat (slope <= threshold) and steep ones."""
    slopes = grid.slopes()
    flat = sum(1 for s in slopes if s <= threshold_deg)
    return SlopeSummary(
        threshold_deg=threshold_deg,
        total_cells=len(slopes),
        flat_cells=flat,
        steep_cells=len(slopes) - flat,
        max_slope=max(slopes, default=0.0),
        mean_slope=sum(slopes) / len(slopes) if slopes else 0.0,
    )
