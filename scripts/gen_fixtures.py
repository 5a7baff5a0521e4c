#!/usr/bin/env python3
"""Generate synthetic boundary fixtures for testing.

Fixtures are tiny hand-designed FeatureCollections - not real boundaries -
chosen so every containment edge case has a known answer.

Usage:
    python scripts/gen_fixtures.py

Output:
    tests/fixtures/*.geojson

Dependencies:
    This script imports from shared/fixtures_expected.py (not tests/) to avoid
    circular dependencies between scripts and tests packages.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from shared.fixtures_expected import EXPECTED_FIXTURE_COUNT, EXPECTED_FIXTURES

# Output directory
FIXTURES_DIR = Path(__file__).parent.parent / "tests" / "fixtures"


def ensure_dir() -> None:
    """Ensure fixtures directory exists."""
    FIXTURES_DIR.mkdir(parents=True, exist_ok=True)
    print(f"Output directory: {FIXTURES_DIR}")


def square(west: float, south: float, east: float, north: float) -> list[list[float]]:
    """Closed counter-clockwise ring as [lng, lat] positions."""
    return [
        [west, south],
        [east, south],
        [east, north],
        [west, north],
        [west, south],
    ]


def feature(
    name: str, reference: str, entity: str, geometry: dict[str, Any]
) -> dict[str, Any]:
    return {
        "type": "Feature",
        "properties": {
            "name": name,
            "reference": reference,
            "entity": entity,
            "dataset": "local-authority-district",
        },
        "geometry": geometry,
    }


# =============================================================================
# boundaries_small.geojson
# =============================================================================
def gen_boundaries_small() -> None:
    """Four features covering each geometry shape the engine handles.

    - Alpha: Polygon, unit square (0,0)-(1,1)
    - Beta: MultiPolygon, squares (10,10)-(11,11) and (12,10)-(13,11)
    - Gamma: Polygon with hole, outer (20,20)-(24,24), hole (21,21)-(23,23)
    - Delta: L-shaped Polygon whose bbox (2,0)-(5,3) also covers (4,2),
      a point outside the polygon itself
    """
    collection = {
        "type": "FeatureCollection",
        "name": "local-authority-district",
        "features": [
            feature(
                "Alpha",
                "E06000001",
                "100",
                {"type": "Polygon", "coordinates": [square(0, 0, 1, 1)]},
            ),
            feature(
                "Beta",
                "E06000002",
                "200",
                {
                    "type": "MultiPolygon",
                    "coordinates": [
                        [square(10, 10, 11, 11)],
                        [square(12, 10, 13, 11)],
                    ],
                },
            ),
            feature(
                "Gamma",
                "E06000003",
                "300",
                {
                    "type": "Polygon",
                    "coordinates": [square(20, 20, 24, 24), square(21, 21, 23, 23)],
                },
            ),
            feature(
                "Delta",
                "E06000004",
                "400",
                {
                    "type": "Polygon",
                    "coordinates": [
                        [[2, 0], [5, 0], [5, 1], [3, 1], [3, 3], [2, 3], [2, 0]]
                    ],
                },
            ),
        ],
    }
    out = FIXTURES_DIR / "boundaries_small.geojson"
    out.write_text(json.dumps(collection, indent=2) + "\n", encoding="utf-8")
    print(f"  wrote {out.name}")


def main() -> None:
    ensure_dir()
    gen_boundaries_small()

    generated = sorted(p.name for p in FIXTURES_DIR.iterdir() if p.is_file())
    missing = [name for name in EXPECTED_FIXTURES if name not in generated]
    if missing:
        raise SystemExit(f"Missing fixtures: {missing}")
    print(f"Generated {EXPECTED_FIXTURE_COUNT} fixture(s)")


if __name__ == "__main__":
    main()
