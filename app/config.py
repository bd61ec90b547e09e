from __future__ import annotations

from functools import lru_cache
from typing import Dict, List

from pydantic import AnyHttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """App configuration (env-friendly).

    Tip: create a .env file and override settings there. List and dict values
    are read as JSON, e.g. OVERPASS_ENDPOINTS='["https://..."]'.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    app_name: str = "Lunch-O-Matic API"
    version: str = "0.1.0"

    # Tried in order; the first one is the primary.
    overpass_endpoints: List[AnyHttpUrl] = [
        "https://overpass-api.de/api/interpreter",
        "https://overpass.kumi.systems/api/interpreter",
    ]
    nominatim_base_url: AnyHttpUrl = "https://nominatim.openstreetmap.org/search"
    map_search_base_url: str = "https://www.google.com/maps/search/?api=1&query="

    # Largest first. A transient error walks down this ladder.
    radius_tiers_m: List[int] = [8000, 5000, 3000]
    # Overpass [timeout:N] per radius tier, in seconds.
    query_timeouts_s: Dict[int, int] = {8000: 45, 5000: 30, 3000: 20}
    transient_statuses: List[int] = [429, 502, 504]
    result_limit: int = 50

    user_agent: str = "lunch-o-matic/0.1.0"

    http_timeout_s: float = 60.0
    log_level: str = "INFO"

    @field_validator("overpass_endpoints")
    @classmethod
    def _endpoints_not_empty(cls, v: List[AnyHttpUrl]) -> List[AnyHttpUrl]:
        if not v:
            raise ValueError("at least one Overpass endpoint is required")
        return v

    @field_validator("radius_tiers_m")
    @classmethod
    def _tiers_descending(cls, v: List[int]) -> List[int]:
        if not v:
            raise ValueError("at least one radius tier is required")
        if any(r <= 0 for r in v):
            raise ValueError("radius tiers must be positive")
        if any(a <= b for a, b in zip(v, v[1:])):
            raise ValueError("radius tiers must be strictly descending")
        return v

    @field_validator("result_limit")
    @classmethod
    def _limit_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("result_limit must be >= 1")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
