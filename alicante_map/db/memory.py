from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from typing import Any, Generic, TypeVar

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


class KeyedStore(Generic[ModelT]):
    """Records of one kind kept in a dict keyed by id.

    Ids are assigned from a counter that only moves forward.  Reads and
    updates hand out copies (copy-on-read), so callers can never change
    stored state except through :meth:`update`.  Updates are serialised by
    an ``asyncio.Lock`` so two partial merges on the same record cannot
    interleave.
    """

    def __init__(self, model: type[ModelT], defaults: Mapping[str, Any]) -> None:
        self._model = model
        self._defaults = dict(defaults)
        self._records: dict[int, ModelT] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    @property
    def kind(self) -> str:
        return self._model.__name__

    def __len__(self) -> int:
        return len(self._records)

    def seed(self, records: Sequence[Mapping[str, Any]]) -> list[ModelT]:
        """Store *records* in input order under fresh sequential ids.

        Any ``id`` in the input is ignored.  Raises ``ValueError`` before
        storing anything if a record names an unknown field.
        """
        payloads = [{k: v for k, v in r.items() if k != "id"} for r in records]
        for payload in payloads:
            check_fields(self._model, payload)

        created: list[ModelT] = []
        for payload in payloads:
            record = self._model(**{**self._defaults, **payload, "id": self._next_id})
            self._records[self._next_id] = record
            self._next_id += 1
            created.append(record.copy())
        return created

    def get(self, record_id: int) -> ModelT | None:
        record = self._records.get(record_id)
        return record.copy() if record is not None else None

    def get_all(self) -> list[ModelT]:
        return [record.copy() for record in self._records.values()]

    async def update(self, record_id: int, updates: Mapping[str, Any]) -> ModelT:
        async with self._lock:
            record = self._records.get(record_id)
            if record is None:
                raise RecordNotFoundError(self.kind, record_id)
            check_fields(self._model, updates)

            # The stored record is replaced only after the merge succeeds.
            merged = self._model(**{**record.to_dict(), **updates, "id": record_id})
            self._records[record_id] = merged
            return merged.copy()


class InMemoryMapRepository(MapRepository):
    """In-process implementation of :class:`MapRepository`.

    Construct one per process (the application lifespan does this) and pass
    it to whatever needs it; nothing is shared at module level.
    """

    def __init__(self) -> None:
        self.schools: KeyedStore[School] = KeyedStore(School, SCHOOL_DEFAULTS)
        self.houses: KeyedStore[House] = KeyedStore(House, HOUSE_DEFAULTS)
        self.agents: KeyedStore[Agent] = KeyedStore(Agent, AGENT_DEFAULTS)

    # -- Schools --

    async def get_all_schools(self) -> list[School]:
        return self.schools.get_all()

    async def get_school(self, school_id: int) -> School | None:
        return self.schools.get(school_id)

    async def update_school(self, school_id: int, updates: Mapping[str, Any]) -> School:
        return await self.schools.update(school_id, updates)

    async def seed_schools(self, records: Sequence[Mapping[str, Any]]) -> list[School]:
        return self.schools.seed(records)

    # -- Houses --

    async def get_all_houses(self) -> list[House]:
        return self.houses.get_all()

    async def get_house(self, house_id: int) -> House | None:
        return self.houses.get(house_id)

    async def update_house(self, house_id: int, updates: Mapping[str, Any]) -> House:
        return await self.houses.update(house_id, updates)

    async def seed_houses(self, records: Sequence[Mapping[str, Any]]) -> list[House]:
        return self.houses.seed(records)

    # -- Agents --

    async def get_all_agents(self) -> list[Agent]:
        return self.agents.get_all()

    async def get_agent(self, agent_id: int) -> Agent | None:
        return self.agents.get(agent_id)

    async def seed_agents(self, records: Sequence[Mapping[str, Any]]) -> list[Agent]:
        return self.agents.seed(records)
