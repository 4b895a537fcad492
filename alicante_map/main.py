from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from alicante_map.api.geocode import router as geocode_router
from alicante_map.api.health import router as health_router
from alicante_map.api.houses import router as houses_router
from alicante_map.api.map import router as map_router
from alicante_map.api.schools import router as schools_router
from alicante_map.config import get_settings
from alicante_map.db.factory import create_repository
from alicante_map.db.seed import seed_repository
from alicante_map.db.sqlite_repo import SQLiteMapRepository

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the store for this process and load the static datasets into it."""
    settings = get_settings()
    repo = await create_repository(settings)

    if settings.SEED_ON_STARTUP and not await repo.get_all_schools() and not await repo.get_all_houses():
        await seed_repository(repo, settings.SCHOOLS_DATA_PATH, settings.HOUSES_DATA_PATH)

    app.state.repository = repo
    try:
        yield
    finally:
        if isinstance(repo, SQLiteMapRepository):
            await repo.dispose()


app = FastAPI(
    title="Alicante Map API",
    description="Schools and rental houses in Alicante, with visit tracking and map filters",
    version="0.1.0",
    lifespan=lifespan,
)

_settings = get_settings()
_cors_origins = [o.strip() for o in _settings.CORS_ORIGINS.split(",") if o.strip()] if _settings.CORS_ORIGINS else []
if _cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Error responses: every error body is {"message": ...}
# ---------------------------------------------------------------------------


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [{"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")} for e in exc.errors()]
    return JSONResponse(status_code=400, content={"message": "Invalid request data", "errors": errors})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


app.include_router(health_router)
app.include_router(schools_router)
app.include_router(houses_router)
app.include_router(map_router)
app.include_router(geocode_router)

if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    uvicorn.run("alicante_map.main:app", host="0.0.0.0", port=8000, reload=True)
