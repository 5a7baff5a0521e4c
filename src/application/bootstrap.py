"""Composition root.

Builds the services once per process from an EngineConfig. Collaborators
can be injected (tests, alternative providers); otherwise the HTTP/file
adapters are created from the configured URL or path.
"""

from __future__ import annotations

from application.boundary_queries import BoundaryQueryService
from application.config import EngineConfig
from application.dataset_cache import Clock, DatasetCache
from application.elevation_analysis import ElevationAnalysisService
from domain.boundaries.repositories import BoundaryDatasetSource
from domain.errors import InvalidInputError
from domain.terrain.repositories import ElevationLookup
from infrastructure.boundaries import FileGeoJsonSource, HttpGeoJsonSource
from infrastructure.elevation import HttpElevationLookup


def build_elevation_service(
    config: EngineConfig, lookup: ElevationLookup | None = None
) -> ElevationAnalysisService:
    if lookup is None:
        if not config.elevation_url:
            raise InvalidInputError("elevation_url is not configured")
        lookup = HttpElevationLookup(config.elevation_url)
    return ElevationAnalysisService(lookup, config)


def build_dataset_cache(
    config: EngineConfig,
    source: BoundaryDatasetSource | None = None,
    clock: Clock | None = None,
) -> DatasetCache:
    if source is None:
        if config.dataset_path:
            source = FileGeoJsonSource(config.dataset_path)
        elif config.dataset_url:
            source = HttpGeoJsonSource(config.dataset_url)
        else:
            raise InvalidInputError("dataset_url or dataset_path must be configured")
    kwargs = {} if clock is None else {"clock": clock}
    return DatasetCache(
        source,
        ttl_s=config.dataset_ttl_s,
        timeout_s=config.dataset_timeout_s,
        **kwargs,
    )


def build_boundary_service(
    config: EngineConfig,
    source: BoundaryDatasetSource | None = None,
    clock: Clock | None = None,
) -> BoundaryQueryService:
    return BoundaryQueryService(build_dataset_cache(config, source, clock))
