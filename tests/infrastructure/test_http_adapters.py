"""Tests for the HTTP and file adapters.

Sessions are MagicMocks: no test performs network I/O.
"""

from __future__ import annotations

import json
import logging
from unittest.mock import MagicMock

import pytest
import requests

from domain.errors import LookupFailedError, UpstreamTimeoutError
from domain.geometry.value_objects import LatLng
from infrastructure.boundaries import FileGeoJsonSource, HttpGeoJsonSource
from infrastructure.elevation import HttpElevationLookup

URL = "https://elevation.test/api/v1/lookup"

POINTS = [LatLng(lat=51.0, lng=-1.0), LatLng(lat=51.0001, lng=-1.0)]


def _response(status: int = 200, payload=None, reason: str = "OK") -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.ok = status < 400
    response.reason = reason
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


def _session(response=None, error=None) -> MagicMock:
    session = MagicMock(spec=requests.Session)
    for method in (session.post, session.get):
        if error is not None:
            method.side_effect = error
        else:
            method.return_value = response
    return session


# ===========================================================================
# HttpElevationLookup
# ===========================================================================
def test_elevations_posts_locations_and_keeps_request_coordinates():
    payload = {
        "results": [
            {"latitude": 51.0, "longitude": -1.0, "elevation": 12.5},
            {"latitude": 51.0, "longitude": -1.0, "elevation": None},
        ]
    }
    session = _session(_response(payload=payload))

    result = HttpElevationLookup(URL, session=session).elevations(POINTS, timeout_s=3)

    session.post.assert_called_once_with(
        URL,
        json={
            "locations": [
                {"latitude": 51.0, "longitude": -1.0},
                {"latitude": 51.0001, "longitude": -1.0},
            ]
        },
        timeout=3,
    )
    assert [p.location for p in result] == POINTS
    assert [p.elevation for p in result] == [12.5, None]


@pytest.mark.parametrize("reading", [float("nan"), float("inf"), float("-inf")])
def test_elevations_non_finite_reading_is_missing(reading):
    payload = {
        "results": [
            {"latitude": 51.0, "longitude": -1.0, "elevation": reading},
            {"latitude": 51.0001, "longitude": -1.0, "elevation": 7.0},
        ]
    }
    session = _session(_response(payload=payload))

    result = HttpElevationLookup(URL, session=session).elevations(POINTS)

    assert [p.elevation for p in result] == [None, 7.0]
    assert not result[0].has_elevation


def test_elevations_empty_request_skips_http():
    session = _session(_response(payload={"results": []}))
    assert HttpElevationLookup(URL, session=session).elevations([]) == []
    session.post.assert_not_called()


def test_elevations_timeout_maps_to_upstream_timeout(caplog):
    session = _session(error=requests.Timeout("read timed out"))

    with caplog.at_level(logging.ERROR):
        with pytest.raises(UpstreamTimeoutError) as exc_info:
            HttpElevationLookup(URL, session=session).elevations(POINTS, timeout_s=2)

    assert exc_info.value.timeout_s == 2
    assert "timed out" in caplog.text


def test_elevations_connection_error_maps_to_lookup_failed():
    session = _session(error=requests.ConnectionError("refused"))
    with pytest.raises(LookupFailedError, match="unreachable"):
        HttpElevationLookup(URL, session=session).elevations(POINTS)


@pytest.mark.parametrize("status", [400, 429, 500, 503])
def test_elevations_http_error_carries_status(status):
    session = _session(_response(status=status, reason="Nope"))

    with pytest.raises(LookupFailedError) as exc_info:
        HttpElevationLookup(URL, session=session).elevations(POINTS)

    assert exc_info.value.status == status


@pytest.mark.parametrize(
    "payload",
    [
        ValueError("not json"),
        {"status": "OK"},
        {"results": [{"latitude": 51.0}]},
        {"results": [{"latitude": 51.0, "longitude": -1.0, "elevation": 1.0}]},
    ],
)
def test_elevations_malformed_response(payload):
    session = _session(_response(payload=payload))
    with pytest.raises(LookupFailedError):
        HttpElevationLookup(URL, session=session).elevations(POINTS)


# ===========================================================================
# HttpGeoJsonSource
# ===========================================================================
def test_geojson_fetch_returns_payload(boundaries_payload):
    session = _session(_response(payload=boundaries_payload))

    result = HttpGeoJsonSource("https://data.test/lad.geojson", session).fetch(5)

    assert result == boundaries_payload
    session.get.assert_called_once_with("https://data.test/lad.geojson", timeout=5)


def test_geojson_fetch_timeout():
    session = _session(error=requests.Timeout())
    with pytest.raises(UpstreamTimeoutError):
        HttpGeoJsonSource("https://data.test/x", session).fetch(1)


def test_geojson_fetch_http_error():
    session = _session(_response(status=404, reason="Not Found"))
    with pytest.raises(LookupFailedError) as exc_info:
        HttpGeoJsonSource("https://data.test/x", session).fetch()
    assert exc_info.value.status == 404
    assert "Not Found" in str(exc_info.value)


def test_geojson_fetch_invalid_json():
    session = _session(_response(payload=ValueError("bad")))
    with pytest.raises(LookupFailedError, match="not valid JSON"):
        HttpGeoJsonSource("https://data.test/x", session).fetch()


# ===========================================================================
# FileGeoJsonSource
# ===========================================================================
def test_file_source_reads_json(tmp_path, boundaries_payload):
    path = tmp_path / "lad.geojson"
    path.write_text(json.dumps(boundaries_payload), encoding="utf-8")

    assert FileGeoJsonSource(path).fetch() == boundaries_payload
    assert FileGeoJsonSource(str(path)).fetch() == boundaries_payload


def test_file_source_missing_file_logs_name_only(tmp_path, caplog):
    path = tmp_path / "secret" / "missing.geojson"

    with caplog.at_level(logging.ERROR):
        with pytest.raises(LookupFailedError) as exc_info:
            FileGeoJsonSource(path).fetch()

    assert exc_info.value.status is not None
    assert "missing.geojson" in caplog.text
    assert str(tmp_path) not in caplog.text


def test_file_source_invalid_json(tmp_path):
    path = tmp_path / "broken.geojson"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(LookupFailedError, match="not valid JSON"):
        FileGeoJsonSource(path).fetch()


def test_file_source_undecodable_bytes(tmp_path):
    path = tmp_path / "binary.geojson"
    path.write_bytes(b"\xff\xfe\x00garbage")
    with pytest.raises(LookupFailedError, match="not valid JSON"):
        FileGeoJsonSource(path).fetch()
