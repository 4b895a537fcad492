from __future__ import annotations

from pathlib import Path

from fastapi import Request

from alicante_map.config import Settings
from alicante_map.db.base import MapRepository
from alicante_map.db.memory import InMemoryMapRepository
from alicante_map.db.sqlite_repo import SQLiteMapRepository


async def create_repository(settings: Settings) -> MapRepository:
    """Build the :class:`MapRepository` selected by ``DB_BACKEND``.

    * ``"memory"`` (default) -- :class:`InMemoryMapRepository`
    * ``"sqlite"``           -- :class:`SQLiteMapRepository`, tables created on demand

    Raises:
        ValueError: If the backend name is not recognised.
    """
    backend = settings.DB_BACKEND.lower()

    if backend == "memory":
        return InMemoryMapRepository()

    if backend == "sqlite":
        Path(settings.SQLITE_PATH).parent.mkdir(parents=True, exist_ok=True)
        repo = SQLiteMapRepository(settings.SQLITE_PATH)
        await repo.init_db()
        return repo

    raise ValueError(f"Unknown DB_BACKEND: {settings.DB_BACKEND!r}. Supported values: 'memory', 'sqlite'.")


def get_map_repository(request: Request) -> MapRepository:
    """FastAPI dependency returning the repository created by the application lifespan."""
    return request.app.state.repository
