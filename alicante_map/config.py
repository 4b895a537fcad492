from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    DB_BACKEND: str = "memory"  # "memory" or "sqlite"
    SQLITE_PATH: str = "./data/map.db"
    CORS_ORIGINS: str = ""  # Comma-separated origins, empty = same-origin only

    # Static datasets loaded into the store on startup
    SCHOOLS_DATA_PATH: str = "./data/schools.json"
    HOUSES_DATA_PATH: str = "./data/houses.json"
    SEED_ON_STARTUP: bool = True

    # Nominatim geocoding (OpenStreetMap usage policy: max 1 request/second)
    NOMINATIM_BASE: str = "https://nominatim.openstreetmap.org"
    NOMINATIM_USER_AGENT: str = "AlicanteMap/1.0 (school and rental map)"
    GEOCODE_CITY_SUFFIX: str = ", Alicante, Spain"
    GEOCODE_COUNTRY_CODES: str = "es"
    GEOCODE_DELAY_SECONDS: float = 1.0
    GEOCODE_TIMEOUT_SECONDS: float = 10.0

    # Map centre, also used as the placeholder location when geocoding fails
    MAP_CENTER_LAT: float = 38.3452
    MAP_CENTER_LNG: float = -0.4815

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
