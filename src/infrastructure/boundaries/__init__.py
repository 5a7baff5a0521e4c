"""Infrastructure adapters for boundary datasets.

Exported for simplified imports.
"""

from .geojson_sources import FileGeoJsonSource, HttpGeoJsonSource

__all__ = ["FileGeoJsonSource", "HttpGeoJsonSource"]
