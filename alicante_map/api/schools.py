from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from alicante_map.db.base import MapRepository, RecordNotFoundError
from alicante_map.db.factory import get_map_repository
from alicante_map.schemas.school import SchoolResponse, SchoolStatsResponse, SchoolUpdateRequest
from alicante_map.services.filters import filter_schools, school_stats
from alicante_map.services.url_state import SCHOOL_FILTER_PARAM, parse_school_filter

logger = logging.getLogger(__name__)

router = APIRouter(tags=["schools"])


@router.get("/api/schools", response_model=list[SchoolResponse])
async def list_schools(
    repo: Annotated[MapRepository, Depends(get_map_repository)],
    school_filter: Annotated[str | None, Query(alias=SCHOOL_FILTER_PARAM)] = None,
) -> list[SchoolResponse]:
    """List schools, optionally narrowed by the map's school filter.

    An unknown filter value is treated as ``all``.
    """
    schools = await repo.get_all_schools()
    return filter_schools(schools, parse_school_filter(school_filter))


@router.get("/api/schools/stats", response_model=SchoolStatsResponse)
async def get_school_stats(
    repo: Annotated[MapRepository, Depends(get_map_repository)],
) -> SchoolStatsResponse:
    """Counters for the schools stats panel, over all schools."""
    schools = await repo.get_all_schools()
    return SchoolStatsResponse(**school_stats(schools))


@router.get("/api/schools/{school_id}", response_model=SchoolResponse)
async def get_school(
    school_id: int,
    repo: Annotated[MapRepository, Depends(get_map_repository)],
) -> SchoolResponse:
    """Get a single school."""
    school = await repo.get_school(school_id)
    if school is None:
        raise HTTPException(status_code=404, detail="School not found")
    return school


@router.patch("/api/schools/{school_id}", response_model=SchoolResponse)
async def update_school(
    school_id: int,
    request: SchoolUpdateRequest,
    repo: Annotated[MapRepository, Depends(get_map_repository)],
) -> SchoolResponse:
    """Mark a school visited / with quota or edit its comments.

    Only the fields present in the body are changed.
    """
    changes = request.changes()
    try:
        school = await repo.update_school(school_id, changes)
    except RecordNotFoundError:
        raise HTTPException(status_code=404, detail="School not found") from None

    logger.info("Updated school %d: %s", school_id, ", ".join(sorted(changes)) or "no changes")
    return school
