"""Application Layer.

Services that orchestrate domain logic and the ports it depends on:
- ElevationAnalysisService: polygon -> lattice -> elevation lookup -> slope grid
- BoundaryQueryService: containment and viewport queries on the cached dataset
- DatasetCache: TTL cache of the boundary dataset and its spatial index
"""
