"""GeoJSON adapters for the BoundaryDatasetSource port.

Both adapters return the decoded JSON object untouched; validation into
domain Value Objects happens in `parse_feature_collection`.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import requests

from domain.errors import LookupFailedError, UpstreamTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0


class HttpGeoJsonSource:
    """Fetch a FeatureCollection document with HTTP GET."""

    def __init__(self, url: str, session: requests.Session | None = None) -> None:
        self.url = url
        self._session = session or requests.Session()

    def fetch(self, timeout_s: float | None = None) -> Mapping[str, Any]:
        timeout = DEFAULT_TIMEOUT_S if timeout_s is None else timeout_s
        try:
            response = self._session.get(self.url, timeout=timeout)
        except requests.Timeout as e:
            logger.error("Boundary dataset download timed out after %.1fs", timeout)
            raise UpstreamTimeoutError("boundary dataset fetch", timeout) from e
        except requests.RequestException as e:
            logger.error("Boundary dataset download failed: %s", type(e).__name__)
            raise LookupFailedError(f"Boundary dataset unreachable: {e}") from e

        if not response.ok:
            raise LookupFailedError(
                f"Failed to fetch boundary dataset: {response.reason}",
                status=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise LookupFailedError(
                "Boundary dataset is not valid JSON", status=response.status_code
            ) from e


class FileGeoJsonSource:
    """Read a FeatureCollection document from a local file."""

    def __init__(self, file_path: Path | str) -> None:
        self.path = Path(file_path)

    def fetch(self, timeout_s: float | None = None) -> Mapping[str, Any]:
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                return json.load(fh)
        except OSError as e:
            # Log only the filename, not the full path
            logger.error(
                "Failed to read %s (errno=%s, strerror=%s)",
                self.path.name,
                getattr(e, "errno", "unknown"),
                getattr(e, "strerror", "unknown"),
            )
            raise LookupFailedError(
                f"Cannot read boundary dataset {self.path.name}", status=e.errno
            ) from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise LookupFailedError(
                f"Boundary dataset {self.path.name} is not valid JSON: {e}"
            ) from e
