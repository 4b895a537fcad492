from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, StrictBool, StrictStr, field_validator

from alicante_map.schemas.school import CAMEL_CONFIG, reject_null

Priority = Literal["HIGH", "LOW"]


class AgentResponse(BaseModel):
    """A letting agent; every contact field may be an empty string."""

    model_config = CAMEL_CONFIG

    id: int
    name: str
    agency: str
    address: str
    phone: str
    email: str
    web: str


class HouseResponse(BaseModel):
    """A rental house shown on the map."""

    model_config = CAMEL_CONFIG

    id: int
    address: str
    lat: float | None = None
    lng: float | None = None
    price: float
    warranty_months: int
    require_insurance: bool
    comments: str
    agent_id: int | None = None
    is_visited: bool
    is_not_available: bool
    priority: Priority


class HouseUpdateRequest(BaseModel):
    """Partial update for a house; same rules as the school update."""

    model_config = CAMEL_CONFIG

    is_visited: StrictBool | None = None
    is_not_available: StrictBool | None = None
    priority: Priority | None = None
    comments: StrictStr | None = None

    @field_validator("is_visited", "is_not_available", "priority", "comments", mode="before")
    @classmethod
    def no_null(cls, value: Any) -> Any:
        return reject_null(value)

    def changes(self) -> dict[str, Any]:
        """Return only the fields that were sent, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)


class HouseStatsResponse(BaseModel):
    """Counters for the houses stats panel."""

    model_config = CAMEL_CONFIG

    total: int
    visited: int
    not_available: int
