from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from alicante_map.db.base import MapRepository, RecordNotFoundError
from alicante_map.db.factory import get_map_repository
from alicante_map.schemas.house import AgentResponse, HouseResponse, HouseStatsResponse, HouseUpdateRequest
from alicante_map.services.filters import filter_houses, house_stats
from alicante_map.services.url_state import HOUSE_FILTER_PARAM, parse_house_filter

logger = logging.getLogger(__name__)

router = APIRouter(tags=["houses"])


@router.get("/api/houses", response_model=list[HouseResponse])
async def list_houses(
    repo: Annotated[MapRepository, Depends(get_map_repository)],
    house_filter: Annotated[str | None, Query(alias=HOUSE_FILTER_PARAM)] = None,
) -> list[HouseResponse]:
    """List rental houses, optionally narrowed by the map's house filter."""
    houses = await repo.get_all_houses()
    return filter_houses(houses, parse_house_filter(house_filter))


@router.get("/api/houses/stats", response_model=HouseStatsResponse)
async def get_house_stats(
    repo: Annotated[MapRepository, Depends(get_map_repository)],
) -> HouseStatsResponse:
    """Counters for the houses stats panel, over all houses."""
    houses = await repo.get_all_houses()
    return HouseStatsResponse(**house_stats(houses))


@router.get("/api/houses/{house_id}", response_model=HouseResponse)
async def get_house(
    house_id: int,
    repo: Annotated[MapRepository, Depends(get_map_repository)],
) -> HouseResponse:
    house = await repo.get_house(house_id)
    if house is None:
        raise HTTPException(status_code=404, detail="House not found")
    return house


@router.patch("/api/houses/{house_id}", response_model=HouseResponse)
async def update_house(
    house_id: int,
    request: HouseUpdateRequest,
    repo: Annotated[MapRepository, Depends(get_map_repository)],
) -> HouseResponse:
    """Mark a house visited / not available, change its priority or comments."""
    changes = request.changes()
    try:
        house = await repo.update_house(house_id, changes)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="House not found") from None

    logger.info("Updated house %d: %s", house_id, ", ".join(sorted(changes)) or "no changes")
    return house


@router.get("/api/agents", response_model=list[AgentResponse])
async def list_agents(
    repo: Annotated[MapRepository, Depends(get_map_repository)],
) -> list[AgentResponse]:
    """List all letting agents."""
    return await repo.get_all_agents()


@router.get("/api/agents/{agent_id}", response_model=AgentResponse)
async def get_agent(
    agent_id: int,
    repo: Annotated[MapRepository, Depends(get_map_repository)],
) -> AgentResponse:
    agent = await repo.get_agent(agent_id)
    if agent is None:
        raise HTTPException(status_code=404, detail="Agent not found")
    return agent
