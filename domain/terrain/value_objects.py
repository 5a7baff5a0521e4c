"""Terrain Bounded Context - Value Objects.

Immutable data structures produced by terrain analysis.
All validation occurs at construction time via Pydantic.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from domain.geometry.value_objects import Bounds, LatLng


# ---------------------------------------------------------------------------
# ElevationPoint
# ---------------------------------------------------------------------------
class ElevationPoint(BaseModel):
    """Elevation sample at a lattice point (Value Object).

    Invariants:
        EP-1: elevation is None (lookup produced no value) or finite;
              NaN and infinite readings are stored as None
    """

    location: LatLng
    elevation: float | None = Field(default=None, allow_inf_nan=False)

    model_config = ConfigDict(frozen=True)

    @field_validator("elevation", mode="before")
    @classmethod
    def missing_if_not_finite(cls, value: object) -> object:
        if isinstance(value, (int, float)) and not math.isfinite(value):
            return None
        return value

    @property
    def has_elevation(self) -> bool:
        return self.elevation is not None


# ---------------------------------------------------------------------------
# GridCell
# ---------------------------------------------------------------------------
class GridCell(BaseModel):
    """Slope and aspect of one lattice cell (Value Object).

    Invariants:
        GC-1: 0 <= slope <= 90 (degrees)
        GC-2: aspect in [0, 360), or None for a flat cell
    """

    bounds: Bounds
    center: LatLng  # Lattice point the gradient was computed at
    slope: float = Field(ge=0, le=90)
    aspect: float | None = Field(default=None, ge=0, lt=360)

    model_config = ConfigDict(frozen=True)

    @property
    def is_flat(self) -> bool:
        return self.aspect is None

    def path(self) -> tuple[LatLng, ...]:
        """Cell outline NW, NE, SE, SW (open ring)."""
        b = self.bounds
        return (
            LatLng(lat=b.north, lng=b.west),
            LatLng(lat=b.north, lng=b.east),
            LatLng(lat=b.south, lng=b.east),
            LatLng(lat=b.south, lng=b.west),
        )


# ---------------------------------------------------------------------------
# ElevationGrid
# ---------------------------------------------------------------------------
class ElevationGrid(BaseModel):
    """Slope/aspect analysis result for one polygon (Value Object).

    Cells are ordered row-major, north to south then west to east. Lattice
    positions lacking a full 3x3 neighbourhood produce no cell.
    """

    cells: tuple[GridCell, ...] = ()
    resolution: float = Field(gt=0)  # Nominal sample spacing in meters
    min_elevation: float | None = None
    max_elevation: float | None = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_elevation_range(self) -> "ElevationGrid":
        if (self.min_elevation is None) != (self.max_elevation is None):
            raise ValueError("min_elevation and max_elevation must be set together")
        if self.min_elevation is not None and self.min_elevation > self.max_elevation:
            raise ValueError(
                f"min_elevation ({self.min_elevation}) > "
                f"max_elevation ({self.max_elevation})"
            )
        return self

    @property
    def is_empty(self) -> bool:
        return not self.cells

    @property
    def min_slope(self) -> float | None:
        return min((c.slope for c in self.cells), default=None)

    @property
    def max_slope(self) -> float | None:
        return max((c.slope for c in self.cells), default=None)

    def slopes(self) -> tuple[float, ...]:
        return tuple(c.slope for c in self.cells)


# ---------------------------------------------------------------------------
# SlopeSummary
# ---------------------------------------------------------------------------
class SlopeSummary(BaseModel):
    """Flat/steep split of an ElevationGrid against a slope threshold."""

    threshold_deg: float = Field(gt=0, lt=90)
    total_cells: int = Field(ge=0)
    flat_cells: int = Field(ge=0)  # slope <= threshold
    steep_cells: int = Field(ge=0)  # slope > threshold
    max_slope: float = Field(ge=0)
    mean_slope: float = Field(ge=0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_counts(self) -> "SlopeSummary":
        if self.flat_cells + self.steep_cells != self.total_cells:
            raise ValueError("flat_cells + steep_cells must equal total_cells")
        return self

    @property
    def flat_percent(self) -> float:
        return 100.0 * self.flat_cells / self.total_cells if self.total_cells else 0.0

    @property
    def steep_percent(self) -> float:
        return 100.0 * self.steep_cells / self.total_cells if self.total_cells else 0.0
