from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, StrictBool, StrictStr, field_validator
from pydantic.alias_generators import to_camel

# JSON payloads use camelCase keys (``isVisited``); attribute names stay snake_case.
CAMEL_CONFIG = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


def reject_null(value: Any) -> Any:
    """Refuse an explicit ``null``; omit the field to leave it unchanged."""
    if value is None:
        raise ValueError("may be omitted but not null")
    return value


class SchoolResponse(BaseModel):
    """A school shown on the map."""

    model_config = CAMEL_CONFIG

    id: int
    name: str
    address: str
    phone: str
    email: str
    is_visited: bool
    has_quota: bool
    comments: str
    lat: float | None = None
    lng: float | None = None


class SchoolUpdateRequest(BaseModel):
    """Partial update for a school.

    Only the fields present in the body are changed.  Values must have the
    exact JSON type (no ``"true"`` for a boolean); unknown keys are ignored.
    """

    model_config = CAMEL_CONFIG

    is_visited: StrictBool | None = None
    has_quota: StrictBool | None = None
    comments: StrictStr | None = None

    @field_validator("is_visited", "has_quota", "comments", mode="before")
    @classmethod
    def no_null(cls, value: Any) -> Any:
        return reject_null(value)

    def changes(self) -> dict[str, Any]:
        """Return only the fields that were sent, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)


class SchoolStatsResponse(BaseModel):
    """Counters for the schools stats panel."""

    model_config = CAMEL_CONFIG

    total: int
    visited: int
    with_quota: int
    without_quota: int
