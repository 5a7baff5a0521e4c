"""Site Terrain Engine Domain Layer.

This package contains the core analysis logic organized by bounded contexts:
- geometry: Coordinates, extents, geodesic distance, point-in-polygon
- terrain: Lattice sampling, slope and aspect (Horn's method)
- boundaries: Administrative-boundary model, spatial index, containment
"""

# Imports alphabetized per project style (isort)
from domain import boundaries, geometry, terrain

__all__ = ["boundaries", "geometry", "terrain"]
