"""Coordinate normalisation for records loaded from the static datasets.

The datasets store ``lat``/``lng`` as numbers, numeric strings or not at all.
Everything is parsed once into an optional :class:`Coordinates` pair; a
record whose pair does not parse is kept but cannot be placed on the map.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from typing import Any, NamedTuple, TypeVar

T = TypeVar("T")


class Coordinates(NamedTuple):
    lat: float
    lng: float


def parse_number(value: Any) -> float | None:
    """Return *value* as a finite float, or ``None`` if it is not one.

    Accepts ints, floats and numeric strings (surrounding whitespace is
    ignored).  ``None``, booleans, empty or non-numeric strings, NaN and
    infinities all give ``None``.  ``0`` is a valid coordinate.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_coordinate(value: Any) -> float | None:
    """Return *value* as a latitude or longitude, or ``None`` if it is missing."""
    return parse_number(value)


def parse_coordinates(lat: Any, lng: Any) -> Coordinates | None:
    """Return the parsed pair, or ``None`` unless both sides parse."""
    parsed_lat = parse_coordinate(lat)
    parsed_lng = parse_coordinate(lng)
    if parsed_lat is None or parsed_lng is None:
        return None
    return Coordinates(parsed_lat, parsed_lng)


def coordinates_of(record: Any) -> Coordinates | None:
    """Return the coordinates of a record with ``lat``/``lng`` attributes."""
    return parse_coordinates(getattr(record, "lat", None), getattr(record, "lng", None))


def split_located(records: Iterable[T]) -> tuple[list[T], list[T]]:
    """Split *records* into ``(placeable, missing_coordinates)``, keeping order."""
    located: list[T] = []
    missing: list[T] = []
    for record in records:
        (located if coordinates_of(record) is not None else missing).append(record)
    return located, missing
