from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from alicante_map.db.base import MapRepository
from alicante_map.db.factory import get_map_repository
from alicante_map.schemas.filters import MapResponse
from alicante_map.services.coordinates import split_located
from alicante_map.services.filters import filter_houses, filter_schools
from alicante_map.services.url_state import (
    HOUSE_FILTER_PARAM,
    SCHOOL_FILTER_PARAM,
    FilterState,
    build_query,
    parse_house_filter,
    parse_school_filter,
)

router = APIRouter(tags=["map"])


@router.get("/api/map", response_model=MapResponse)
async def get_map(
    repo: Annotated[MapRepository, Depends(get_map_repository)],
    school_filter: Annotated[str | None, Query(alias=SCHOOL_FILTER_PARAM)] = None,
    house_filter: Annotated[str | None, Query(alias=HOUSE_FILTER_PARAM)] = None,
) -> MapResponse:
    """Return the placeable schools and houses for the given filters.

    Records without valid coordinates are left out.  The response echoes
    the filters actually applied (unknown values become ``all``) and the
    canonical query string for them.
    """
    state = FilterState(school=parse_school_filter(school_filter), house=parse_house_filter(house_filter))

    schools, _ = split_located(filter_schools(await repo.get_all_schools(), state.school))
    houses, _ = split_located(filter_houses(await repo.get_all_houses(), state.house))
    agents = await repo.get_all_agents()

    return MapResponse(
        school_filter=state.school,
        house_filter=state.house,
        query=build_query("", state),
        schools=schools,
        houses=houses,
        agents=agents,
    )
