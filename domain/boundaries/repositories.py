"""Domain Port(s) for Boundary Dataset I/O.

Defines interfaces (Protocols) that infrastructure adapters must implement.
No concrete I/O here.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol


class BoundaryDatasetSource(Protocol):
    """Port for fetching a raw GeoJSON FeatureCollection payload.

    Implementations live in infrastructure (HTTP, local file). Validation of
    the payload happens in the domain (`parse_feature_collection`).
    """

    def fetch(self, timeout_s: float | None = None) -> Mapping[str, Any]:
        """Return the decoded GeoJSON object.

        Raises:
            LookupFailedError: The source reported a non-success status
            UpstreamTimeoutError: The source did not answer within timeout_s
        """
        ...
