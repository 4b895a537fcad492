from __future__ import annotations

from typing import Any

from sqlalchemy import Boolean, Float, ForeignKey, Integer, String, Text, inspect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Async-compatible declarative base for all ORM models."""

    def to_dict(self) -> dict[str, Any]:
        """Return the column attributes of this record as a plain dict."""
        return {attr.key: getattr(self, attr.key) for attr in inspect(type(self)).column_attrs}

    def copy(self) -> Any:
        """Return a detached copy carrying the same column values."""
        return type(self)(**self.to_dict())


class School(Base):
    __tablename__ = "schools"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False, default="")
    phone: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    is_visited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_quota: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    comments: Mapped[str] = mapped_column(Text, nullable=False, default="")

    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)

    def __repr__(self) -> str:
        return f"<School(id={self.id}, name={self.name!r})>"


class Agent(Base):
    __tablename__ = "agents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    agency: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    address: Mapped[str] = mapped_column(Text, nullable=False, default="")
    phone: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    web: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    def __repr__(self) -> str:
        return f"<Agent(id={self.id}, name={self.name!r}, agency={self.agency!r})>"


class House(Base):
    __tablename__ = "houses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(Text, nullable=False, default="")
    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)

    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)  # per month
    warranty_months: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    require_insurance: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    comments: Mapped[str] = mapped_column(Text, nullable=False, default="")
    agent_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("agents.id"), nullable=True)

    is_visited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_not_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="LOW")  # HIGH / LOW

    def __repr__(self) -> str:
        return f"<House(id={self.id}, address={self.address!r}, price={self.price})>"


# Defaults applied to in-memory records, which never go through an INSERT.
SCHOOL_DEFAULTS: dict[str, Any] = {
    "address": "",
    "phone": "",
    "email": "",
    "is_visited": False,
    "has_quota": False,
    "comments": "",
    "lat": None,
    "lng": None,
}

AGENT_DEFAULTS: dict[str, Any] = {
    "name": "",
    "agency": "",
    "address": "",
    "phone": "",
    "email": "",
    "web": "",
}

HOUSE_DEFAULTS: dict[str, Any] = {
    "address": "",
    "lat": None,
    "lng": None,
    "price": 0.0,
    "warranty_months": 0,
    "require_insurance": False,
    "comments": "",
    "agent_id": None,
    "is_visited": False,
    "is_not_available": False,
    "priority": "LOW",
}
