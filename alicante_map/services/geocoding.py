"""Geocoding service using the OpenStreetMap Nominatim API (free, no API key).

Used to fill in coordinates for dataset records that have an address but no
``lat``/``lng``.  Nominatim allows at most one request per second, so batch
lookups run sequentially with a fixed delay between requests.

When a lookup fails the caller gets a deterministic placeholder (the map
centre) flagged as approximate; failures are logged, never raised past the
batch / API boundary.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import Any

import httpx

from alicante_map.config import get_settings
from alicante_map.services.coordinates import Coordinates, coordinates_of, parse_coordinates

logger = logging.getLogger(__name__)

_POSTAL_CODE_RE = re.compile(r"C\.P\.\s*\d+")


class GeocodingServiceError(Exception):
    """Raised when the geocoding service encounters a network or unexpected error."""


def clean_address(address: str) -> str:
    """Strip ``C.P. 03001``-style postal code fragments that confuse Nominatim."""
    return _POSTAL_CODE_RE.sub("", address).strip()


def placeholder_location() -> Coordinates:
    """Return the fixed location used when an address cannot be geocoded."""
    settings = get_settings()
    return Coordinates(settings.MAP_CENTER_LAT, settings.MAP_CENTER_LNG)


@asynccontextmanager
async def _client_or(client: httpx.AsyncClient | None) -> AsyncIterator[httpx.AsyncClient]:
    if client is not None:
        yield client
        return
    settings = get_settings()
    async with httpx.AsyncClient(timeout=settings.GEOCODE_TIMEOUT_SECONDS) as new_client:
        yield new_client


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def geocode_address(address: str, client: httpx.AsyncClient | None = None) -> Coordinates | None:
    """Geocode a street address in Alicante.

    Parameters
    ----------
    address:
        A street address as stored in the dataset.
    client:
        Optional shared ``httpx.AsyncClient``; a short-lived one is created
        when omitted.

    Returns
    -------
    Coordinates | None
        The first match, or ``None`` if Nominatim has no result.

    Raises
    ------
    GeocodingServiceError
        If there is a network, HTTP or decoding error.
    """
    settings = get_settings()
    query = clean_address(address) + settings.GEOCODE_CITY_SUFFIX
    url = f"{settings.NOMINATIM_BASE}/search"
    params = {
        "format": "json",
        "q": query,
        "limit": 1,
        "countrycodes": settings.GEOCODE_COUNTRY_CODES,
    }
    headers = {"User-Agent": settings.NOMINATIM_USER_AGENT}

    try:
        async with _client_or(client) as http:
            response = await http.get(url, params=params, headers=headers)
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPStatusError as exc:
        raise GeocodingServiceError(
            f"HTTP error while geocoding '{address}': {exc.response.status_code}"
        ) from exc
    except httpx.RequestError as exc:
        raise GeocodingServiceError(f"Network error while geocoding '{address}': {exc}") from exc
    except ValueError as exc:
        raise GeocodingServiceError(f"Invalid response while geocoding '{address}': {exc}") from exc

    if not isinstance(data, list) or not data:
        logger.info("No geocoding result for %r", address)
        return None

    first = data[0]
    coords = parse_coordinates(first.get("lat"), first.get("lon")) if isinstance(first, dict) else None
    if coords is None:
        logger.info("Geocoding result for %r has no usable coordinates", address)
        return None

    logger.info("Geocoded %r: %s, %s", address, coords.lat, coords.lng)
    return coords


async def geocode_or_placeholder(
    address: str, client: httpx.AsyncClient | None = None
) -> tuple[Coordinates, bool]:
    """Geocode *address*, falling back to the placeholder location.

    Returns ``(coordinates, approximate)`` where *approximate* is ``True``
    when the placeholder was used.
    """
    try:
        coords = await geocode_address(address, client=client)
    except GeocodingServiceError as exc:
        logger.warning("Geocoding failed for %r, using placeholder: %s", address, exc)
        coords = None

    if coords is None:
        return placeholder_location(), True
    return coords, False


async def geocode_missing(
    records: Iterable[Any],
    client: httpx.AsyncClient | None = None,
    delay: float | None = None,
) -> list[tuple[Any, Coordinates, bool]]:
    """Geocode every record that has an address but no coordinates.

    Lookups run one at a time with *delay* seconds between requests
    (``GEOCODE_DELAY_SECONDS`` by default).  Records that already have
    coordinates, or have no address, are skipped.

    Returns a list of ``(record, coordinates, approximate)`` tuples in input
    order.
    """
    if delay is None:
        delay = get_settings().GEOCODE_DELAY_SECONDS

    pending = [r for r in records if coordinates_of(r) is None and getattr(r, "address", None)]
    results: list[tuple[Any, Coordinates, bool]] = []

    async with _client_or(client) as http:
        for i, record in enumerate(pending):
            if i > 0 and delay > 0:
                await asyncio.sleep(delay)
            coords, approximate = await geocode_or_placeholder(record.address, client=http)
            results.append((record, coords, approximate))

    approximate_count = sum(1 for _, _, approx in results if approx)
    logger.info("Geocoded %d records (%d using the placeholder)", len(results), approximate_count)
    return results
