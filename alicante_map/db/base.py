from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from alicante_map.db.models import Agent, House, School


class RecordNotFoundError(LookupError):
    """Raised when an update targets an id that has no record."""

    def __init__(self, kind: str, record_id: int) -> None:
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found: {record_id}")


class MapRepository(ABC):
    """Abstract interface for the schools, houses and agents shown on the map.

    Records are seeded once and then changed through partial updates; there
    is no delete.  Every record returned is detached from the repository:
    mutating it does not change stored state.
    """

    # ------------------------------------------------------------------
    # Schools
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_all_schools(self) -> list[School]:
        """Return every school in insertion (id) order."""
        ...

    @abstractmethod
    async def get_school(self, school_id: int) -> School | None:
        """Return a single school by id, or ``None`` if not found."""
        ...

    @abstractmethod
    async def update_school(self, school_id: int, updates: Mapping[str, Any]) -> School:
        """Merge *updates* onto a school and return the updated record.

        Only the given fields change.  Raises :class:`RecordNotFoundError`
        for an unknown id and ``ValueError`` for an unknown field; in both
        cases nothing is modified.
        """
        ...

    @abstractmethod
    async def seed_schools(self, records: Sequence[Mapping[str, Any]]) -> list[School]:
        """Insert *records* in order, assigning sequential ids, and return them."""
        ...

    # ------------------------------------------------------------------
    # Houses
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_all_houses(self) -> list[House]:
        """Return every house in insertion (id) order."""
        ...

    @abstractmethod
    async def get_house(self, house_id: int) -> House | None:
        """Return a single house by id, or ``None`` if not found."""
        ...

    @abstractmethod
    async def update_house(self, house_id: int, updates: Mapping[str, Any]) -> House:
        """Merge *updates* onto a house; same contract as :meth:`update_school`."""
        ...

    @abstractmethod
    async def seed_houses(self, records: Sequence[Mapping[str, Any]]) -> list[House]:
        """Insert *records* in order, assigning sequential ids, and return them."""
        ...

    # ------------------------------------------------------------------
    # Agents
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_all_agents(self) -> list[Agent]:
        """Return every letting agent in insertion (id) order."""
        ...

    @abstractmethod
    async def get_agent(self, agent_id: int) -> Agent | None:
        """Return a single agent by id, or ``None`` if not found."""
        ...

    @abstractmethod
    async def seed_agents(self, records: Sequence[Mapping[str, Any]]) -> list[Agent]:
        """Insert *records* in order, assigning sequential ids, and return them."""
        ...


def check_fields(model: type, updates: Mapping[str, Any]) -> None:
    """Raise ``ValueError`` if *updates* names a field *model* does not have, or the id."""
    columns = {attr.key for attr in model.__mapper__.column_attrs}  # type: ignore[attr-defined]
    unknown = sorted(set(updates) - (columns - {"id"}))
    if unknown:
        raise ValueError(f"Unknown {model.__name__} fields: {', '.join(unknown)}")
