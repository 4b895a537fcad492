from __future__ import annotations

from pydantic import BaseModel

from alicante_map.schemas.house import AgentResponse, HouseResponse
from alicante_map.schemas.school import CAMEL_CONFIG, SchoolResponse
from alicante_map.services.filters import HouseFilter, SchoolFilter


class MapResponse(BaseModel):
    """Everything the map needs for one combination of filters.

    ``query`` is the canonical query string for the filters (``""`` when
    both are ``all``), suitable for ``history.replaceState``.
    """

    model_config = CAMEL_CONFIG

    school_filter: SchoolFilter
    house_filter: HouseFilter
    query: str
    schools: list[SchoolResponse]
    houses: list[HouseResponse]
    agents: list[AgentResponse]


class GeocodeResponse(BaseModel):
    """Coordinates for an address; ``approximate`` marks the placeholder location."""

    model_config = CAMEL_CONFIG

    address: str
    lat: float
    lng: float
    approximate: bool = False
