from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from alicante_map.db.base import MapRepository, RecordNotFoundError, check_fields
from alicante_map.db.models import (
    AGENT_DEFAULTS,
    HOUSE_DEFAULTS,
    SCHOOL_DEFAULTS,
    Agent,
    Base,
    House,
    School,
)

ModelT = TypeVar("ModelT", bound=Base)


class SQLiteMapRepository(MapRepository):
    """SQLite-backed implementation of :class:`MapRepository`.

    Uses *aiosqlite* via SQLAlchemy's async engine.  Each update runs in its
    own transaction, so a partial merge is never visible half-applied.
    Returned records are detached copies.
    """

    def __init__(self, sqlite_path: str = "./data/map.db") -> None:
        url = f"sqlite+aiosqlite:///{sqlite_path}"
        self._engine = create_async_engine(url, echo=False)
        self._session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self._engine, expire_on_commit=False
        )

    @property
    def engine(self) -> AsyncEngine:
        """Expose the underlying async engine (used by the application lifespan)."""
        return self._engine

    async def init_db(self) -> None:
        """Create all tables if they do not already exist."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self._engine.dispose()

    # ------------------------------------------------------------------
    # Generic helpers
    # ------------------------------------------------------------------

    async def _get_all(self, model: type[ModelT]) -> list[ModelT]:
        async with self._session_factory() as session:
            result = await session.execute(select(model).order_by(model.id))  # type: ignore[attr-defined]
            return [row.copy() for row in result.scalars().all()]

    async def _get(self, model: type[ModelT], record_id: int) -> ModelT | None:
        async with self._session_factory() as session:
            record = await session.get(model, record_id)
            return record.copy() if record is not None else None

    async def _update(self, model: type[ModelT], record_id: int, updates: Mapping[str, Any]) -> ModelT:
        async with self._session_factory() as session, session.begin():
            record = await session.get(model, record_id)
            if record is None:
                raise RecordNotFoundError(model.__name__, record_id)
            check_fields(model, updates)
            for key, value in updates.items():
                setattr(record, key, value)
        return record.copy()

    async def _seed(
        self,
        model: type[ModelT],
        defaults: Mapping[str, Any],
        records: Sequence[Mapping[str, Any]],
    ) -> list[ModelT]:
        payloads = [{k: v for k, v in r.items() if k != "id"} for r in records]
        for payload in payloads:
            check_fields(model, payload)

        rows = [model(**{**defaults, **payload}) for payload in payloads]
        async with self._session_factory() as session, session.begin():
            # Flush one at a time so autoincrement ids follow input order.
            for row in rows:
                session.add(row)
                await session.flush()
        return [row.copy() for row in rows]

    # ------------------------------------------------------------------
    # Schools
    # ------------------------------------------------------------------

    async def get_all_schools(self) -> list[School]:
        return await self._get_all(School)

    async def get_school(self, school_id: int) -> School | None:
        return await self._get(School, school_id)

    async def update_school(self, school_id: int, updates: Mapping[str, Any]) -> School:
        return await self._update(School, school_id, updates)

    async def seed_schools(self, records: Sequence[Mapping[str, Any]]) -> list[School]:
        return await self._seed(School, SCHOOL_DEFAULTS, records)

    # ------------------------------------------------------------------
    # Houses
    # ------------------------------------------------------------------

    async def get_all_houses(self) -> list[House]:
        return await self._get_all(House)

    async def get_house(self, house_id: int) -> House | None:
        return await self._get(House, house_id)

    async def update_house(self, house_id: int, updates: Mapping[str, Any]) -> House:
        return await self._update(House, house_id, updates)

    async def seed_houses(self, records: Sequence[Mapping[str, Any]]) -> list[House]:
        return await self._seed(House, HOUSE_DEFAULTS, records)

    # ------------------------------------------------------------------
    # Agents
    # ------------------------------------------------------------------

    async def get_all_agents(self) -> list[Agent]:
        return await self._get_all(Agent)

    async def get_agent(self, agent_id: int) -> Agent | None:
        return await self._get(Agent, agent_id)

    async def seed_agents(self, records: Sequence[Mapping[str, Any]]) -> list[Agent]:
        return await self._seed(Agent, AGENT_DEFAULTS, records)
