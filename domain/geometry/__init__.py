"""Geometry Bounded Context.

Plane and geodesic primitives shared by the terrain and boundaries contexts:
- Value Objects: LatLng, Bounds, Polygon
- Services: geodesic_distance, polygon_bounds, point_in_polygon, point_in_rings
"""
