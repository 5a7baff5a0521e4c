"""Domain Port(s) for Terrain I/O.

Defines interfaces (Protocols) that infrastructure adapters must implement.
No concrete I/O here.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from domain.geometry.value_objects import LatLng

from .value_objects import ElevationPoint


class ElevationLookup(Protocol):
    """Port for obtaining elevations of arbitrary points.

    Implementations live in infrastructure (e.g., the HTTP JSON adapter) or
    in tests as fakes returning canned elevations.
    """

    def elevations(
        self, points: Sequence[LatLng], timeout_s: float | None = None
    ) -> list[ElevationPoint]:
        """Return one ElevationPoint per input point, in input order.

        Raises:
            LookupFailedError: The provider reported a non-success status
            UpstreamTimeoutError: The provider did not answer within timeout_s
        """
        ...
