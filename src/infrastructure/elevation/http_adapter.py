"""HTTP adapter for the ElevationLookup port.

Talks to any elevation service exposing the Open-Elevation style JSON API:

    POST <url>  {"locations": [{"latitude": .., "longitude": ..}, ...]}
    200         {"results": [{"latitude": .., "longitude": .., "elevation": ..}, ...]}

Results are matched to the request by position. Returned ElevationPoints
carry the *requested* coordinates so lattice keys stay exact even when the
provider echoes rounded coordinates. A null elevation becomes None.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import requests
from pydantic import BaseModel, ValidationError

from domain.errors import LookupFailedError, UpstreamTimeoutError
from domain.geometry.value_objects import LatLng
from domain.terrain.value_objects import ElevationPoint

# Module-level logger (reused across all calls)
logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 20.0


class _ElevationResult(BaseModel):
    latitude: float
    longitude: float
    elevation: float | None = None


class _LookupResponse(BaseModel):
    results: list[_ElevationResult]


class HttpElevationLookup:
    """ElevationLookup backed by a JSON HTTP endpoint.

    Parameters
    ----------
    url: str
        Lookup endpoint accepting POSTed locations.
    session: requests.Session | None
        Optional session (connection pooling, auth headers, test doubles).
    """

    def __init__(self, url: str, session: requests.Session | None = None) -> None:
        self.url = url
        self._session = session or requests.Session()

    def elevations(
        self, points: Sequence[LatLng], timeout_s: float | None = None
    ) -> list[ElevationPoint]:
        if not points:
            return []
        timeout = DEFAULT_TIMEOUT_S if timeout_s is None else timeout_s
        body = {
            "locations": [{"latitude": p.lat, "longitude": p.lng} for p in points]
        }

        try:
            response = self._session.post(self.url, json=body, timeout=timeout)
        except requests.Timeout as e:
            logger.error("Elevation lookup timed out after %.1fs", timeout)
            raise UpstreamTimeoutError("elevation lookup", timeout) from e
        except requests.RequestException as e:
            logger.error("Elevation lookup request failed: %s", type(e).__name__)
            raise LookupFailedError(f"Elevation service unreachable: {e}") from e

        if not response.ok:
            logger.error(
                "Elevation lookup failed (status=%s, %d points)",
                response.status_code,
                len(points),
            )
            raise LookupFailedError(
                f"Elevation service failed: {response.reason}",
                status=response.status_code,
            )

        try:
            parsed = _LookupResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise LookupFailedError(
                f"Malformed elevation response: {e}", status=response.status_code
            ) from e

        if len(parsed.results) != len(points):
            raise LookupFailedError(
                f"Elevation service returned {len(parsed.results)} results "
                f"for {len(points)} points",
                status=response.status_code,
            )

        return [
            ElevationPoint(location=point, elevation=result.elevation)
            for point, result in zip(points, parsed.results)
        ]
