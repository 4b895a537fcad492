"""Seed the map store from the static Alicante datasets.

Two JSON files are read:

* ``schools.json`` -- a list of schools (``name``, ``address``, ``phone``,
  ``email`` and optional ``lat``/``lng``, which may be numbers or strings);
* ``houses.json`` -- ``{"houses": [...], "agents": [...]}`` where each house
  references its letting agent through ``agentId``.

Ids in the files are not trusted: the store assigns its own sequential ids,
and house ``agentId`` values are remapped to the ids given to the agents.

Usage::

    python -m alicante_map.db.seed --geocode-missing --output data/schools.json
    python -m alicante_map.db.seed --sqlite data/map.db

``--geocode-missing`` looks up schools without coordinates through Nominatim,
one request per second, and writes the enriched school list to ``--output``.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from alicante_map.config import get_settings
from alicante_map.db.base import MapRepository
from alicante_map.db.models import School
from alicante_map.services.coordinates import parse_coordinates, parse_number

logger = logging.getLogger(__name__)

_PRIORITIES = ("HIGH", "LOW")


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _flag(value: Any) -> bool:
    return value is True


def _non_negative_int(value: Any) -> int:
    number = parse_number(value)
    return max(int(number), 0) if number is not None else 0


def _price(value: Any) -> float:
    number = parse_number(value)
    return max(number, 0.0) if number is not None else 0.0


def _coords(raw: Mapping[str, Any]) -> dict[str, float | None]:
    coords = parse_coordinates(raw.get("lat"), raw.get("lng"))
    if coords is None:
        return {"lat": None, "lng": None}
    return {"lat": coords.lat, "lng": coords.lng}


# ---------------------------------------------------------------------------
# Record normalisation
# ---------------------------------------------------------------------------


def normalise_school(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Map a dataset school onto :class:`School` attribute names."""
    return {
        "name": _text(raw.get("name")),
        "address": _text(raw.get("address")),
        "phone": _text(raw.get("phone")),
        "email": _text(raw.get("email")),
        "is_visited": _flag(raw.get("isVisited")),
        "has_quota": _flag(raw.get("hasQuota")),
        "comments": _text(raw.get("comments")),
        **_coords(raw),
    }


def normalise_agent(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Map a dataset agent onto :class:`Agent` attribute names."""
    return {key: _text(raw.get(key)) for key in ("name", "agency", "address", "phone", "email", "web")}


def normalise_house(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Map a dataset house onto :class:`House` attribute names.

    ``agent_id`` still holds the dataset's agent id; :func:`seed_repository`
    remaps it.
    """
    priority = _text(raw.get("priority")).upper()
    agent_id = raw.get("agentId")
    return {
        "address": _text(raw.get("address")),
        **_coords(raw),
        "price": _price(raw.get("price")),
        "warranty_months": _non_negative_int(raw.get("warrantyMonths")),
        "require_insurance": _flag(raw.get("requireInsurance")),
        "comments": _text(raw.get("comments")),
        "agent_id": agent_id if isinstance(agent_id, int) and not isinstance(agent_id, bool) else None,
        "is_visited": _flag(raw.get("isVisited")),
        "is_not_available": _flag(raw.get("isNotAvailable")),
        "priority": priority if priority in _PRIORITIES else "LOW",
    }


# ---------------------------------------------------------------------------
# Dataset loading
# ---------------------------------------------------------------------------


def _read_json(path: Path | str) -> Any:
    path = Path(path)
    if not path.is_file():
        logger.warning("Dataset %s not found, nothing loaded", path)
        return None
    with path.open(encoding="utf-8") as fh:
        return json.load(fh)


def load_schools(path: Path | str) -> list[dict[str, Any]]:
    """Load and normalise the schools dataset; a missing file gives ``[]``."""
    data = _read_json(path)
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON list of schools")
    return [normalise_school(raw) for raw in data if isinstance(raw, dict)]


def load_houses(path: Path | str) -> tuple[list[dict[str, Any]], list[tuple[Any, dict[str, Any]]]]:
    """Load the houses dataset.

    Returns ``(houses, agents)`` where *agents* pairs each dataset agent id
    with its normalised payload.  A missing file gives ``([], [])``.
    """
    data = _read_json(path)
    if data is None:
        return [], []
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object with 'houses' and 'agents'")
    houses = [normalise_house(raw) for raw in data.get("houses") or [] if isinstance(raw, dict)]
    agents = [(raw.get("id"), normalise_agent(raw)) for raw in data.get("agents") or [] if isinstance(raw, dict)]
    return houses, agents


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------


@dataclass
class SeedSummary:
    schools: int = 0
    houses: int = 0
    agents: int = 0
    schools_without_coords: int = 0
    houses_without_coords: int = 0
    unresolved_agents: int = 0


async def seed_repository(
    repo: MapRepository,
    schools_path: Path | str | None,
    houses_path: Path | str | None,
) -> SeedSummary:
    """Load both datasets into *repo*.

    Agents are seeded first so that each house's ``agent_id`` can be
    rewritten to the id the store gave its agent.  Houses pointing at an
    unknown agent keep ``agent_id = None``.
    """
    summary = SeedSummary()

    if houses_path is not None:
        houses, agents = load_houses(houses_path)
        seeded_agents = await repo.seed_agents([payload for _, payload in agents])
        id_map = {
            dataset_id: agent.id for (dataset_id, _), agent in zip(agents, seeded_agents) if dataset_id is not None
        }
        for house in houses:
            dataset_id = house["agent_id"]
            house["agent_id"] = id_map.get(dataset_id)
            if dataset_id is not None and house["agent_id"] is None:
                summary.unresolved_agents += 1

        await repo.seed_houses(houses)
        summary.agents = len(seeded_agents)
        summary.houses = len(houses)
        summary.houses_without_coords = sum(1 for h in houses if h["lat"] is None)

    if schools_path is not None:
        schools = load_schools(schools_path)
        await repo.seed_schools(schools)
        summary.schools = len(schools)
        summary.schools_without_coords = sum(1 for s in schools if s["lat"] is None)
        for school in schools:
            if school["lat"] is None:
                logger.info("School %s has no valid coordinates", school["name"])

    logger.info(
        "Seeded %d schools (%d without coordinates), %d houses (%d without coordinates), %d agents",
        summary.schools,
        summary.schools_without_coords,
        summary.houses,
        summary.houses_without_coords,
        summary.agents,
    )
    if summary.unresolved_agents:
        logger.warning("%d houses reference an unknown agent", summary.unresolved_agents)
    return summary


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def school_to_json(school: School) -> dict[str, Any]:
    """Serialise a school back to the dataset's camelCase layout."""
    return {
        "name": school.name,
        "address": school.address,
        "phone": school.phone,
        "email": school.email,
        "isVisited": school.is_visited,
        "hasQuota": school.has_quota,
        "comments": school.comments,
        "lat": school.lat,
        "lng": school.lng,
    }


async def geocode_schools_file(
    schools_path: Path | str,
    output_path: Path | str,
    delay: float | None = None,
) -> int:
    """Fill in missing school coordinates and write the result to *output_path*.

    Returns the number of schools that were geocoded.
    """
    from alicante_map.services.geocoding import geocode_missing

    records = [School(**payload) for payload in load_schools(schools_path)]
    results = await geocode_missing(records, delay=delay)
    for record, coords, approximate in results:
        record.lat, record.lng = coords.lat, coords.lng
        if approximate:
            logger.warning("School %s placed at the placeholder location", record.name)

    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", encoding="utf-8") as fh:
        json.dump([school_to_json(r) for r in records], fh, ensure_ascii=False, indent=2)
    logger.info("Wrote %d schools to %s", len(records), output)
    return len(results)


async def seed_sqlite(sqlite_path: str, schools_path: Path | str, houses_path: Path | str) -> SeedSummary:
    """Create a SQLite database at *sqlite_path* and seed it from the datasets."""
    from alicante_map.db.sqlite_repo import SQLiteMapRepository

    Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)
    repo = SQLiteMapRepository(sqlite_path)
    try:
        await repo.init_db()
        if await repo.get_all_schools() or await repo.get_all_houses():
            logger.warning("Database %s already has data, skipping seed", sqlite_path)
            return SeedSummary()
        return await seed_repository(repo, schools_path, houses_path)
    finally:
        await repo.dispose()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Load the Alicante schools and houses datasets.")
    parser.add_argument(
        "--schools",
        default=settings.SCHOOLS_DATA_PATH,
        help=f"Schools JSON file (default: {settings.SCHOOLS_DATA_PATH}).",
    )
    parser.add_argument(
        "--houses",
        default=settings.HOUSES_DATA_PATH,
        help=f"Houses and agents JSON file (default: {settings.HOUSES_DATA_PATH}).",
    )
    parser.add_argument(
        "--geocode-missing",
        action="store_true",
        help="Geocode schools without coordinates and write them to --output.",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Where to write geocoded schools (default: overwrite --schools).",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=settings.GEOCODE_DELAY_SECONDS,
        help=f"Seconds between geocoding requests (default: {settings.GEOCODE_DELAY_SECONDS}).",
    )
    parser.add_argument(
        "--sqlite",
        default=None,
        help="Seed a SQLite database at this path.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for dataset seeding and geocoding."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    args = parse_args(argv)

    if args.geocode_missing:
        asyncio.run(geocode_schools_file(args.schools, args.output or args.schools, delay=args.delay))

    if args.sqlite:
        asyncio.run(seed_sqlite(args.sqlite, args.schools, args.houses))

    if not args.geocode_missing and not args.sqlite:
        schools = load_schools(args.schools)
        houses, agents = load_houses(args.houses)
        located = sum(1 for s in schools if s["lat"] is not None)
        logger.info("Schools: %d (%d with coordinates)", len(schools), located)
        logger.info("Houses: %d, agents: %d", len(houses), len(agents))
    return 0


if __name__ == "__main__":
    sys.exit(main())
