"""Boundaries Bounded Context.

Responsible for administrative-boundary datasets and spatial queries:
- Value Objects: Feature, FeatureCollection, PolygonGeometry,
  MultiPolygonGeometry, AuthorityInfo, ContainmentResult
- Services: build_index (SpatialIndex), query_containment, filter_by_viewport
- Ports: BoundaryDatasetSource
"""
