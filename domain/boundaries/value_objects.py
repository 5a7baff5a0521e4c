"""Boundaries Bounded Context - Value Objects.

Typed GeoJSON model for administrative-boundary datasets. Raw payloads are
validated here, at the boundary, so the index and query services only ever
see well-formed Polygon / MultiPolygon geometry.

Positions follow GeoJSON order: [lng, lat]. A trailing altitude is accepted
and dropped.
"""

from __future__ import annotations

import json
import math
from collections.abc import Iterator, Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
)

from domain.errors import InvalidInputError
from domain.geometry.value_objects import Bounds

Position = tuple[float, float]  # (lng, lat)


def _to_position(value: tuple[float, ...]) -> Position:
    if len(value) < 2:
        raise ValueError(f"Position needs at least [lng, lat], got {list(value)}")
    lng, lat = value[0], value[1]
    if not (math.isfinite(lng) and math.isfinite(lat)):
        raise ValueError(f"Position must be finite, got {list(value)}")
    if not (-180 <= lng <= 180 and -90 <= lat <= 90):
        raise ValueError(f"Position out of range: [{lng}, {lat}]")
    return (lng, lat)


def _check_ring(ring: tuple[Position, ...]) -> tuple[Position, ...]:
    if len(ring) < 3:
        raise ValueError(f"Linear ring needs at least 3 positions, got {len(ring)}")
    return ring


GeoPosition = Annotated[tuple[float, ...], AfterValidator(_to_position)]
LinearRing = Annotated[tuple[GeoPosition, ...], AfterValidator(_check_ring)]
PolygonRings = Annotated[tuple[LinearRing, ...], Field(min_length=1)]


# ---------------------------------------------------------------------------
# Geometry (tagged on "type")
# ---------------------------------------------------------------------------
class PolygonGeometry(BaseModel):
    """GeoJSON Polygon: outer ring followed by holes."""

    type: Literal["Polygon"] = "Polygon"
    coordinates: PolygonRings

    model_config = ConfigDict(frozen=True)

    def polygons(self) -> tuple[tuple[tuple[Position, ...], ...], ...]:
        return (self.coordinates,)

    def rings(self) -> Iterator[tuple[Position, ...]]:
        yield from self.coordinates


class MultiPolygonGeometry(BaseModel):
    """GeoJSON MultiPolygon: list of polygons, each outer ring then holes."""

    type: Literal["MultiPolygon"] = "MultiPolygon"
    coordinates: Annotated[tuple[PolygonRings, ...], Field(min_length=1)]

    model_config = ConfigDict(frozen=True)

    def polygons(self) -> tuple[tuple[tuple[Position, ...], ...], ...]:
        return self.coordinates

    def rings(self) -> Iterator[tuple[Position, ...]]:
        for polygon in self.coordinates:
            yield from polygon


Geometry = Annotated[
    Union[PolygonGeometry, MultiPolygonGeometry], Field(discriminator="type")
]


# ---------------------------------------------------------------------------
# Feature / FeatureCollection
# ---------------------------------------------------------------------------
class FeatureProperties(BaseModel):
    """Administrative-boundary attributes.

    name/reference/entity identify the authority; any other dataset columns
    (dates, prefix, typology, ...) are kept as extra fields.
    """

    name: str
    reference: str
    entity: str = ""

    model_config = ConfigDict(frozen=True, extra="allow", coerce_numbers_to_str=True)


class Feature(BaseModel):
    type: Literal["Feature"] = "Feature"
    properties: FeatureProperties
    geometry: Geometry

    model_config = ConfigDict(frozen=True)

    def bounds(self) -> Bounds:
        """Bounding box over every ring of every polygon."""
        return Bounds.from_xy(
            position for ring in self.geometry.rings() for position in ring
        )


class FeatureCollection(BaseModel):
    type: Literal["FeatureCollection"] = "FeatureCollection"
    name: str = ""
    features: tuple[Feature, ...] = ()

    model_config = ConfigDict(frozen=True)

    def with_features(
        self, features: tuple[Feature, ...] | list[Feature]
    ) -> "FeatureCollection":
        """Same collection metadata, different feature list."""
        return FeatureCollection(name=self.name, features=tuple(features))

    def to_geojson(self) -> dict[str, Any]:
        """GeoJSON-compatible dict (tuples rendered as lists)."""
        return self.model_dump(mode="json")


# ---------------------------------------------------------------------------
# Query results
# ---------------------------------------------------------------------------
class AuthorityInfo(BaseModel):
    """Identity of the authority owning a boundary feature."""

    name: str
    reference: str
    entity: str
    planning_authority: str

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_feature(cls, feature: Feature) -> "AuthorityInfo":
        props = feature.properties
        return cls(
            name=props.name,
            reference=props.reference,
            entity=props.entity,
            planning_authority=f"{props.name} Council",
        )


class ContainmentResult(BaseModel):
    found: bool
    authority: AuthorityInfo | None = None

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Boundary parsing
# ---------------------------------------------------------------------------
def parse_feature_collection(
    payload: Mapping[str, Any] | str | bytes,
) -> FeatureCollection:
    """Validate a raw GeoJSON FeatureCollection payload.

    Raises:
        InvalidInputError: Not JSON, not a FeatureCollection, or any feature
            with missing properties or unsupported/malformed geometry
    """
    try:
        if isinstance(payload, (str, bytes)):
            payload = json.loads(payload)
        if not isinstance(payload, Mapping):
            raise InvalidInputError(
                f"Expected a GeoJSON object, got {type(payload).__name__}"
            )
        return FeatureCollection.model_validate(payload)
    except ValidationError as e:
        raise InvalidInputError(
            f"Malformed FeatureCollection: {e.error_count()} validation error(s); "
            f"first: {e.errors()[0]['msg']}"
        ) from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidInputError(f"Dataset is not valid JSON: {e}") from e
