"""Geometry Bounded Context - Value Objects.

Immutable data structures representing geographic coordinates and extents.
All validation occurs at construction time via Pydantic.

Coordinates are WGS84 decimal degrees. Dateline wraparound is not modelled:
a Bounds always has west <= east.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Vertices closer than this (in degrees) are treated as the same vertex
VERTEX_TOLERANCE_DEG = 1e-12


class LatLng(BaseModel):
    """Geographic coordinate in WGS84 (Value Object).

    Invariants:
        LL-1: lat in [-90, 90]
        LL-2: lng in [-180, 180]
        LL-3: both finite
    """

    lat: float = Field(ge=-90, le=90, allow_inf_nan=False)
    lng: float = Field(ge=-180, le=180, allow_inf_nan=False)

    model_config = ConfigDict(frozen=True)

    def as_xy(self) -> tuple[float, float]:
        """Return (lng, lat), the GeoJSON position order."""
        return (self.lng, self.lat)


class Bounds(BaseModel):
    """Axis-aligned geographic extent (Value Object).

    Zero-height or zero-width bounds are valid (a single point or a line has
    such bounds); operations needing an area reject them themselves.
    """

    north: float = Field(ge=-90, le=90, allow_inf_nan=False)
    south: float = Field(ge=-90, le=90, allow_inf_nan=False)
    east: float = Field(ge=-180, le=180, allow_inf_nan=False)
    west: float = Field(ge=-180, le=180, allow_inf_nan=False)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_ordering(self) -> "Bounds":
        if self.north < self.south:
            raise ValueError(
                f"Invalid lat ordering: north={self.north} < south={self.south}"
            )
        if self.east < self.west:
            raise ValueError(
                f"Invalid lng ordering: east={self.east} < west={self.west}"
            )
        return self

    @classmethod
    def from_xy(cls, positions: Iterable[tuple[float, float]]) -> "Bounds":
        """Build the bounds of (lng, lat) positions.

        Raises:
            ValueError: If positions is empty
        """
        north, south, east, west = -90.0, 90.0, -180.0, 180.0
        seen = False
        for lng, lat in positions:
            seen = True
            north = max(north, lat)
            south = min(south, lat)
            east = max(east, lng)
            west = min(west, lng)
        if not seen:
            raise ValueError("Cannot compute bounds of an empty coordinate set")
        return cls(north=north, south=south, east=east, west=west)

    @classmethod
    def from_points(cls, points: Iterable[LatLng]) -> "Bounds":
        return cls.from_xy(p.as_xy() for p in points)

    @property
    def height_deg(self) -> float:
        return self.north - self.south

    @property
    def width_deg(self) -> float:
        return self.east - self.west

    def contains(self, point: LatLng) -> bool:
        """Inclusive containment test."""
        return (
            self.south <= point.lat <= self.north
            and self.west <= point.lng <= self.east
        )

    def intersects(self, other: "Bounds") -> bool:
        """Axis-aligned rectangle overlap; touching edges count as overlap."""
        return not (
            self.south > other.north
            or self.north < other.south
            or self.west > other.east
            or self.east < other.west
        )


class Polygon(BaseModel):
    """Simple polygon given as an ordered vertex list (Value Object).

    The ring is implicitly closed. A trailing vertex equal to the first one is
    accepted and dropped by ``ring()``, so consumers never depend on closure.

    Invariants:
        PG-1: at least 3 distinct vertices
    """

    vertices: tuple[LatLng, ...]

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_vertices(self) -> "Polygon":
        distinct = {(v.lat, v.lng) for v in self.ring()}
        if len(distinct) < 3:
            raise ValueError(
                f"Polygon needs at least 3 distinct vertices, got {len(distinct)}"
            )
        return self

    @classmethod
    def of(cls, points: Iterable[LatLng | dict]) -> "Polygon":
        return cls(vertices=tuple(points))

    def ring(self) -> tuple[LatLng, ...]:
        """Vertices without a duplicated closing vertex."""
        vertices = self.vertices
        if len(vertices) > 1 and _same_vertex(vertices[0], vertices[-1]):
            vertices = vertices[:-1]
        return vertices

    def xy(self) -> list[tuple[float, float]]:
        """Open ring as (lng, lat) positions."""
        return [v.as_xy() for v in self.ring()]

    def bounds(self) -> Bounds:
        return Bounds.from_points(self.vertices)


def _same_vertex(a: LatLng, b: LatLng) -> bool:
    return (
        abs(a.lat - b.lat) <= VERTEX_TOLERANCE_DEG
        and abs(a.lng - b.lng) <= VERTEX_TOLERANCE_DEG
    )
