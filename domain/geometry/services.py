"""Geometry Bounded Context - Domain Services.

Pure functions, no state and no I/O.

Point-in-polygon tests work on (lng, lat) positions treated as planar
coordinates, which is exact for the small, non-dateline polygons this engine
handles (site outlines and administrative boundaries).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from pyproj import Geod

from domain.geometry.value_objects import Bounds, LatLng, Polygon

Position = tuple[float, float]  # (lng, lat)
Ring = Sequence[Position]

# WGS84 ellipsoid for geodesic calculations (same as GPS, EPSG:4326)
_geod = Geod(ellps="WGS84")


# ---------------------------------------------------------------------------
# Geodesic Distance
# ---------------------------------------------------------------------------
def geodesic_distance(start: LatLng, end: LatLng) -> float:
    """Calculate geodesic distance between two points in meters.

    Uses the WGS84 ellipsoid.

    Args:
        start: Starting geographic point
        end: Ending geographic point

    Returns:
        Distance in meters (always positive)
    """
    _, _, distance = _geod.inv(start.lng, start.lat, end.lng, end.lat)
    return float(abs(distance))


# ---------------------------------------------------------------------------
# Bounding Boxes
# ---------------------------------------------------------------------------
def polygon_bounds(polygon: Polygon | Iterable[Ring]) -> Bounds:
    """Bounding box of a polygon or of a collection of (lng, lat) rings."""
    if isinstance(polygon, Polygon):
        return polygon.bounds()
    return Bounds.from_xy(position for ring in polygon for position in ring)


def ring_area(ring: Ring) -> float:
    """Signed shoelace area of a ring in square degrees (CCW positive)."""
    n = len(ring)
    total = 0.0
    for i in range(n):
        x1, y1 = ring[i]
        x2, y2 = ring[(i + 1) % n]
        total += x1 * y2 - x2 * y1
    return total / 2.0


# ---------------------------------------------------------------------------
# Point in Polygon
# ---------------------------------------------------------------------------
def point_in_ring(x: float, y: float, ring: Ring) -> bool:
    """Ray-casting test of position (x=lng, y=lat) against one ring.

    The ring may be open or closed; a closing duplicate contributes a
    zero-length edge that never toggles the result.
    """
    inside = False
    n = len(ring)
    j = n - 1
    for i in range(n):
        xi, yi = ring[i]
        xj, yj = ring[j]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def point_in_rings(point: LatLng, rings: Iterable[Ring]) -> bool:
    """Even-odd fill test over any number of rings.

    Holes and the parts of a multi-polygon combine by parity: a point inside
    an outer ring and one of its holes crosses two rings and is outside.
    """
    inside = False
    for ring in rings:
        if point_in_ring(point.lng, point.lat, ring):
            inside = not inside
    return inside


def point_in_polygon(point: LatLng, polygon: Polygon) -> bool:
    return point_in_ring(point.lng, point.lat, polygon.xy())
