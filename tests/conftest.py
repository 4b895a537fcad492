"""Shared pytest fixtures for the alicante-map test suite."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from alicante_map.db.base import MapRepository
from alicante_map.db.factory import get_map_repository
from alicante_map.db.memory import InMemoryMapRepository
from alicante_map.db.models import Agent, Base, House, School
from alicante_map.db.sqlite_repo import SQLiteMapRepository
from alicante_map.main import app

# ---------------------------------------------------------------------------
# Test data helpers
# ---------------------------------------------------------------------------


def _school_payloads() -> list[dict]:
    """Four Alicante schools covering every visited / quota combination."""
    return [
        {
            "name": "CEIP Benalúa",
            "address": "Calle Alberola, 26, Alicante",
            "phone": "965 93 65 90",
            "email": "03009877@gva.es",
            "is_visited": True,
            "has_quota": True,
            "lat": 38.3379,
            "lng": -0.4925,
        },
        {
            "name": "CEIP Azorín",
            "address": "Calle Pintor Velázquez, 5, Alicante",
            "phone": "965 93 66 30",
            "email": "03010673@gva.es",
            "is_visited": True,
            "has_quota": False,
            "lat": 38.3489,
            "lng": -0.4866,
        },
        {
            "name": "Colegio La Devesa",
            "address": "Calle Pintor Gisbert, 2, Alicante",
            "phone": "965 12 24 21",
            "email": "",
            "is_visited": False,
            "has_quota": True,
            "lat": 38.3536,
            "lng": -0.4874,
        },
        {
            "name": "CEIP Virgen del Remedio",
            "address": "Calle Músico Pedro Terol, 23, Alicante",
            "phone": "965 93 68 45",
            "email": "03010818@gva.es",
        },
    ]


def _agent_payloads() -> list[dict]:
    return [
        {
            "name": "Lucía Pérez",
            "agency": "Inmobiliaria Benalúa",
            "phone": "965 12 34 56",
            "email": "lucia@inmobenalua.es",
            "web": "https://inmobenalua.es",
        },
        {"name": "Javier Ruiz", "agency": "Alquileres Centro", "phone": "622 45 67 89"},
    ]


def _house_payloads() -> list[dict]:
    """Four houses: visited, visited-but-gone, gone without coordinates, untouched."""
    return [
        {
            "address": "Calle Reyes Católicos, 33, Alicante",
            "lat": 38.3431,
            "lng": -0.4938,
            "price": 950.0,
            "warranty_months": 2,
            "require_insurance": True,
            "agent_id": 1,
            "is_visited": True,
            "priority": "HIGH",
        },
        {
            "address": "Avenida de Aguilera, 12, Alicante",
            "lat": 38.3386,
            "lng": -0.4881,
            "price": 820.0,
            "warranty_months": 1,
            "agent_id": 2,
            "is_visited": True,
            "is_not_available": True,
        },
        {
            "address": "Calle Pintor Aparicio, 5, Alicante",
            "price": 1100.0,
            "warranty_months": 2,
            "agent_id": 1,
            "is_not_available": True,
        },
        {
            "address": "Calle García Andreu, 18, Alicante",
            "lat": 38.3365,
            "lng": -0.4902,
            "price": 780.0,
        },
    ]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def school_payloads() -> list[dict]:
    return _school_payloads()


@pytest.fixture()
def memory_repo() -> InMemoryMapRepository:
    """Return an :class:`InMemoryMapRepository` seeded with the test data."""
    repo = InMemoryMapRepository()
    repo.schools.seed(_school_payloads())
    repo.agents.seed(_agent_payloads())
    repo.houses.seed(_house_payloads())
    return repo


@pytest.fixture()
def db_path(tmp_path) -> str:
    """Create a temporary SQLite database seeded with test data and return its path."""
    path = str(tmp_path / "test_map.db")
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)

    with Session(sync_engine) as session:
        for i, payload in enumerate(_school_payloads(), start=1):
            session.add(School(id=i, **payload))
        for i, payload in enumerate(_agent_payloads(), start=1):
            session.add(Agent(id=i, **payload))
        for i, payload in enumerate(_house_payloads(), start=1):
            session.add(House(id=i, **payload))
        session.commit()

    sync_engine.dispose()
    return path


@pytest.fixture()
def sqlite_repo(db_path) -> SQLiteMapRepository:
    """Return an async :class:`SQLiteMapRepository` backed by the test database."""
    return SQLiteMapRepository(db_path)


@pytest.fixture()
def test_client(memory_repo) -> TestClient:
    """Return a FastAPI ``TestClient`` wired to the seeded in-memory repository."""

    def _override() -> MapRepository:
        return memory_repo

    app.dependency_overrides[get_map_repository] = _override

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
