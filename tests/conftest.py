"""Root pytest configuration for all tests.

Provides fixtures shared across bounded contexts. Imports resolve through
`pythonpath = ["src", "."]` (pyproject.toml), so tests use `domain.*`,
`application.*` and `infrastructure.*` exactly as production code does.
"""

from __future__ import annotations

from typing import Any

import pytest

from domain.boundaries.value_objects import FeatureCollection, parse_feature_collection
from tests.conftest_utils import FakeClock, load_fixture_json


@pytest.fixture
def boundaries_payload() -> dict[str, Any]:
    """Raw GeoJSON of tests/fixtures/boundaries_small.geojson."""
    return load_fixture_json("boundaries_small.geojson")


@pytest.fixture
def boundaries(boundaries_payload: dict[str, Any]) -> FeatureCollection:
    return parse_feature_collection(boundaries_payload)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
