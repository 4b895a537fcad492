"""Tests for the Nominatim geocoding service (HTTP is mocked with httpx.MockTransport)."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from alicante_map.db.models import School
from alicante_map.services.coordinates import Coordinates
from alicante_map.services.geocoding import (
    GeocodingServiceError,
    clean_address,
    geocode_address,
    geocode_missing,
    geocode_or_placeholder,
    placeholder_location,
)

PLACEHOLDER = Coordinates(38.3452, -0.4815)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _found(lat: str = "38.3379", lon: str = "-0.4925"):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"lat": lat, "lon": lon, "display_name": "Alicante"}])

    return handler


# ---------------------------------------------------------------------------
# Address cleaning
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("address", "expected"),
    [
        ("Calle Alberola, 26, C.P. 03007", "Calle Alberola, 26,"),
        ("C.P.03001 Calle Sevilla, 9", "Calle Sevilla, 9"),
        ("  Avenida de Denia, 98  ", "Avenida de Denia, 98"),
        ("Plaza de los Luceros", "Plaza de los Luceros"),
    ],
)
def test_clean_address(address, expected):
    assert clean_address(address) == expected


def test_placeholder_is_map_centre():
    assert placeholder_location() == PLACEHOLDER


# ---------------------------------------------------------------------------
# Single lookups
# ---------------------------------------------------------------------------


class TestGeocodeAddress:
    @pytest.mark.asyncio
    async def test_success_sends_nominatim_query(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{"lat": "38.3379", "lon": "-0.4925"}])

        async with _client(handler) as client:
            coords = await geocode_address("Calle Alberola, 26", client=client)

        assert coords == Coordinates(38.3379, -0.4925)
        [request] = seen
        assert request.url.path == "/search"
        assert request.url.params["q"] == "Calle Alberola, 26, Alicante, Spain"
        assert request.url.params["format"] == "json"
        assert request.url.params["limit"] == "1"
        assert request.url.params["countrycodes"] == "es"
        assert request.headers["User-Agent"].startswith("AlicanteMap/")

    @pytest.mark.asyncio
    async def test_no_result_returns_none(self):
        async with _client(lambda request: httpx.Response(200, json=[])) as client:
            assert await geocode_address("Calle Inventada, 1", client=client) is None

    @pytest.mark.asyncio
    async def test_result_without_numbers_returns_none(self):
        async with _client(_found(lat="", lon="x")) as client:
            assert await geocode_address("Calle Alberola, 26", client=client) is None

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        async with _client(lambda request: httpx.Response(503)) as client:
            with pytest.raises(GeocodingServiceError, match="503"):
                await geocode_address("Calle Alberola, 26", client=client)

    @pytest.mark.asyncio
    async def test_network_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(GeocodingServiceError, match="Network error"):
                await geocode_address("Calle Alberola, 26", client=client)

    @pytest.mark.asyncio
    async def test_invalid_json_raises(self):
        async with _client(lambda request: httpx.Response(200, content=b"<html>")) as client:
            with pytest.raises(GeocodingServiceError, match="Invalid response"):
                await geocode_address("Calle Alberola, 26", client=client)


class TestGeocodeOrPlaceholder:
    @pytest.mark.asyncio
    async def test_found(self):
        async with _client(_found()) as client:
            coords, approximate = await geocode_or_placeholder("Calle Alberola, 26", client=client)
        assert coords == Coordinates(38.3379, -0.4925)
        assert approximate is False

    @pytest.mark.asyncio
    async def test_failure_falls_back_to_placeholder(self):
        async with _client(lambda request: httpx.Response(500)) as client:
            coords, approximate = await geocode_or_placeholder("Calle Alberola, 26", client=client)
        assert coords == PLACEHOLDER
        assert approximate is True

    @pytest.mark.asyncio
    async def test_no_result_falls_back_to_placeholder(self):
        async with _client(lambda request: httpx.Response(200, json=[])) as client:
            coords, approximate = await geocode_or_placeholder("Nowhere", client=client)
        assert (coords, approximate) == (PLACEHOLDER, True)


# ---------------------------------------------------------------------------
# Batches
# ---------------------------------------------------------------------------


class TestGeocodeMissing:
    @pytest.mark.asyncio
    async def test_only_missing_records_are_looked_up_in_order(self):
        queries: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            queries.append(request.url.params["q"])
            if "Sevilla" in request.url.params["q"]:
                return httpx.Response(500)
            return httpx.Response(200, json=[{"lat": "38.36", "lon": "-0.47"}])

        schools = [
            School(name="Placed", address="Calle Alberola, 26", lat=38.33, lng=-0.49),
            School(name="Denia", address="Avenida de Denia, 98"),
            School(name="No address", address=""),
            School(name="Sevilla", address="Calle Sevilla, 9", lat="bad", lng="bad"),
        ]

        async with _client(handler) as client:
            results = await geocode_missing(schools, client=client, delay=0)

        assert queries == ["Avenida de Denia, 98, Alicante, Spain", "Calle Sevilla, 9, Alicante, Spain"]
        assert [(r.name, c, approx) for r, c, approx in results] == [
            ("Denia", Coordinates(38.36, -0.47), False),
            ("Sevilla", PLACEHOLDER, True),
        ]

    @pytest.mark.asyncio
    async def test_waits_between_requests(self):
        schools = [School(name=str(i), address=f"Calle {i}") for i in range(3)]
        sleep = AsyncMock()

        async with _client(_found()) as client:
            with patch("alicante_map.services.geocoding.asyncio.sleep", sleep):
                await geocode_missing(schools, client=client, delay=1.5)

        assert sleep.await_count == 2
        sleep.assert_awaited_with(1.5)

    @pytest.mark.asyncio
    async def test_nothing_to_do(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        async with _client(handler) as client:
            results = await geocode_missing([School(name="A", address="x", lat=1.0, lng=2.0)], client=client)
        assert results == []
