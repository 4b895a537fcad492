from __future__ import annotations

import logging

from fastapi import APIRouter, Query

from alicante_map.schemas.filters import GeocodeResponse
from alicante_map.services.geocoding import geocode_or_placeholder

logger = logging.getLogger(__name__)

router = APIRouter(tags=["geocode"])


@router.get("/api/geocode", response_model=GeocodeResponse)
async def geocode(
    address: str = Query(..., min_length=1, description="Street address in Alicante"),
) -> GeocodeResponse:
    """Proxy address geocoding requests to Nominatim.

    When the lookup fails or finds nothing, the map centre is returned with
    ``approximate`` set, so the caller can still place the record.
    """
    coords, approximate = await geocode_or_placeholder(address)
    return GeocodeResponse(address=address, lat=coords.lat, lng=coords.lng, approximate=approximate)
