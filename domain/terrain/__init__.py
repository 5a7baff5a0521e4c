"""Terrain Bounded Context.

Responsible for terrain surface analysis inside a polygon:
- Value Objects: ElevationPoint, GridCell, ElevationGrid, SlopeSummary
- Services: sample_grid (GridSampler), compute_grid (Horn's method slope/aspect)
- Ports: ElevationLookup
"""
