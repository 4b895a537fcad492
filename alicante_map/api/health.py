from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from alicante_map.db.base import MapRepository
from alicante_map.db.factory import get_map_repository

router = APIRouter(tags=["health"])


@router.get("/api/health")
async def health_check(
    repo: Annotated[MapRepository, Depends(get_map_repository)],
) -> dict[str, str | int]:
    """Readiness probe; also reports how many records were loaded."""
    return {
        "status": "ok",
        "schools": len(await repo.get_all_schools()),
        "houses": len(await repo.get_all_houses()),
    }
