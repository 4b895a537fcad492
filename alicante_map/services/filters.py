"""Category filters for the schools and houses shown on the map.

Both filters partition records on a pair of booleans rather than a single
status field:

  * schools: ``visited`` is ``is_visited and has_quota``, ``withoutQuota`` is
    ``is_visited and not has_quota``.  A school that has not been visited
    appears only under ``all``.
  * houses: ``visited`` is ``is_visited and not is_not_available``,
    ``notAvailable`` is ``is_not_available``.  A visited house that is no
    longer available appears only under ``notAvailable``.

All functions are pure and keep the input order.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from typing import Any, TypeVar

T = TypeVar("T")


class SchoolFilter(str, enum.Enum):
    ALL = "all"
    VISITED = "visited"
    WITHOUT_QUOTA = "withoutQuota"


class HouseFilter(str, enum.Enum):
    ALL = "all"
    VISITED = "visited"
    NOT_AVAILABLE = "notAvailable"


def _coerce(enum_cls: type[enum.Enum], value: Any) -> Any:
    """Return the member of *enum_cls* for *value*, or the ``ALL`` member."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return enum_cls["ALL"]


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def school_matches(school: Any, school_filter: SchoolFilter | str) -> bool:
    """Return ``True`` if *school* is shown under *school_filter*."""
    school_filter = _coerce(SchoolFilter, school_filter)
    if school_filter is SchoolFilter.VISITED:
        return bool(school.is_visited and school.has_quota)
    if school_filter is SchoolFilter.WITHOUT_QUOTA:
        return bool(school.is_visited and not school.has_quota)
    return True


def house_matches(house: Any, house_filter: HouseFilter | str) -> bool:
    """Return ``True`` if *house* is shown under *house_filter*."""
    house_filter = _coerce(HouseFilter, house_filter)
    if house_filter is HouseFilter.VISITED:
        return bool(house.is_visited and not house.is_not_available)
    if house_filter is HouseFilter.NOT_AVAILABLE:
        return bool(house.is_not_available)
    return True


def filter_schools(schools: Iterable[T], school_filter: SchoolFilter | str) -> list[T]:
    """Return the schools shown under *school_filter*, in input order."""
    return [s for s in schools if school_matches(s, school_filter)]


def filter_houses(houses: Iterable[T], house_filter: HouseFilter | str) -> list[T]:
    """Return the houses shown under *house_filter*, in input order."""
    return [h for h in houses if house_matches(h, house_filter)]


# ---------------------------------------------------------------------------
# Stats panel counters
# ---------------------------------------------------------------------------


def school_stats(schools: Iterable[Any]) -> dict[str, int]:
    """Count schools for the stats panel.

    ``visited`` and ``with_quota`` count the raw flags independently;
    ``without_quota`` uses the same rule as the ``withoutQuota`` filter.
    """
    schools = list(schools)
    return {
        "total": len(schools),
        "visited": sum(1 for s in schools if s.is_visited),
        "with_quota": sum(1 for s in schools if s.has_quota),
        "without_quota": sum(1 for s in schools if school_matches(s, SchoolFilter.WITHOUT_QUOTA)),
    }


def house_stats(houses: Iterable[Any]) -> dict[str, int]:
    """Count houses per filter section for the stats panel."""
    houses = list(houses)
    return {
        "total": len(houses),
        "visited": sum(1 for h in houses if house_matches(h, HouseFilter.VISITED)),
        "not_available": sum(1 for h in houses if house_matches(h, HouseFilter.NOT_AVAILABLE)),
    }
