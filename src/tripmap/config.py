"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="TRIPMAP_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Trip Map Planner API"
    api_prefix: str = "/api"
    backend_base_url: Optional[str] = Field(
        default="http://127.0.0.1:3000",
        description="Base URL of the marker/directions backend (serves /get_markers, /directions, ...).",
    )
    backend_timeout_seconds: float = Field(default=15.0, gt=0.0)
    backend_max_retries: int = Field(
        default=2,
        ge=0,
        description="Retries for idempotent reads only (marker list, map token). Directions are never retried.",
    )
    backend_backoff_seconds: float = Field(default=0.5, ge=0.0)
    geocoding_base_url: str = Field(
        default="https://api.mapbox.com",
        description="Reverse-geocoding host used for clicked-location lookups.",
    )
    map_style: str = "mapbox://styles/mapbox/streets-v11"
    map_center: tuple[float, float] = Field(
        default=(-79.7196, 43.2272),
        description="Initial camera center as (longitude, latitude).",
    )
    map_zoom: float = Field(default=15.0, ge=0.0)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            # Try comma-separated
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("map_center", mode="before")
    @classmethod
    def _parse_center_from_env(cls, value: Any) -> tuple[float, float]:
        """Accept "lng,lat" or a JSON array for the map center."""
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except (json.JSONDecodeError, TypeError):
                parsed = [item.strip() for item in value.split(",") if item.strip()]
            value = parsed
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return (float(value[0]), float(value[1]))
        raise ValueError("map_center must contain exactly two numbers (longitude, latitude)")


settings = Settings()
