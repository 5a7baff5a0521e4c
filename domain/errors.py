"""Engine-wide error hierarchy.

Shared by the geometry, terrain and boundaries bounded contexts and by the
application layer that orchestrates them. Nothing here is retried internally:
callers decide whether a failure is worth another attempt.
"""

from __future__ import annotations


class GeoEngineError(Exception):
    """Base error for terrain and boundary operations."""


class InvalidInputError(GeoEngineError, ValueError):
    """Bad polygon, resolution, coordinates or geometry payload."""


class LookupFailedError(GeoEngineError):
    """An external collaborator (elevation lookup, dataset fetch) reported failure.

    Attributes:
        status: Upstream status (HTTP code, provider status string) if known
        reason: Human readable description of the failure
    """

    def __init__(self, reason: str, status: int | str | None = None) -> None:
        self.status = status
        self.reason = reason
        if status is None:
            super().__init__(reason)
        else:
            super().__init__(f"{reason} (status={status})")


class UpstreamTimeoutError(GeoEngineError, TimeoutError):
    """A bounded wait on an external collaborator was exceeded.

    Kept distinct from LookupFailedError so callers can retry with backoff.
    """

    def __init__(self, operation: str, timeout_s: float) -> None:
        self.operation = operation
        self.timeout_s = timeout_s
        super().__init__(f"{operation} exceeded timeout of {timeout_s:.1f}s")


class DatasetUnavailableError(GeoEngineError):
    """No cached or freshly fetched boundary dataset could be obtained."""
