from __future__ import annotations

import os
from typing import Any, Optional

from pydantic import BaseModel, Field

from utils import mask_secret


class Configuration(BaseModel):
    # Google Maps Platform
    google_places_api_key: Optional[str] = Field(default=None)
    google_distance_matrix_api_key: Optional[str] = Field(default=None)
    google_maps_base_url: str = Field(default="https://maps.googleapis.com/maps/api")
    google_timeout: int = Field(default=15)

    # Search / filtering
    nearby_radius_m: int = Field(default=1000)
    plan_radius_m: int = Field(default=1500)
    min_rating: float = Field(default=3.5)
    wait_times_enabled: bool = Field(default=True)
    wait_time_max_venues: int = Field(default=10)

    # LLM
    local_llm: Optional[str] = Field(default=None)
    llm_provider: Optional[str] = Field(default=None)
    llm_api_key: Optional[str] = Field(default=None)
    llm_base_url: Optional[str] = Field(default=None)
    llm_model_id: Optional[str] = Field(default=None)
    llm_temperature: float = Field(default=0.7)
    # native ollama base (without /v1)
    ollama_base_url: str = Field(default="http://localhost:11434")

    @classmethod
    def from_env(cls, overrides: Optional[dict[str, Any]] = None) -> "Configuration":
        raw: dict[str, Any] = {}

        env_map = {
            "google_places_api_key": os.getenv("GOOGLE_PLACES_API_KEY"),
            "google_distance_matrix_api_key": os.getenv("GOOGLE_DISTANCE_MATRIX_API_KEY"),
            "google_maps_base_url": os.getenv("GOOGLE_MAPS_BASE_URL"),
            "google_timeout": os.getenv("GOOGLE_TIMEOUT"),
            "nearby_radius_m": os.getenv("NEARBY_RADIUS_M"),
            "plan_radius_m": os.getenv("PLAN_RADIUS_M"),
            "min_rating": os.getenv("MIN_RATING"),
            "wait_times_enabled": os.getenv("WAIT_TIMES_ENABLED"),
            "wait_time_max_venues": os.getenv("WAIT_TIME_MAX_VENUES"),
            # LLM
            "local_llm": os.getenv("LOCAL_LLM"),
            "llm_provider": os.getenv("LLM_PROVIDER"),
            "llm_api_key": os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY"),
            "llm_base_url": os.getenv("LLM_BASE_URL"),
            "llm_model_id": os.getenv("LLM_MODEL_ID"),
            "llm_temperature": os.getenv("LLM_TEMPERATURE"),
            "ollama_base_url": os.getenv("OLLAMA_BASE_URL"),
        }

        bool_fields = {"wait_times_enabled"}

        for k, v in env_map.items():
            if v is None:
                continue
            if k in bool_fields:
                raw[k] = str(v).lower() in {"1", "true", "yes", "on"}
            else:
                raw[k] = v

        if overrides:
            raw.update({k: v for k, v in overrides.items() if v is not None})

        return cls(**raw)

    @property
    def distance_matrix_key(self) -> Optional[str]:
        return self.google_distance_matrix_api_key or self.google_places_api_key

    @property
    def llm_enabled(self) -> bool:
        return bool(self.llm_provider or self.llm_base_url or self.local_llm or self.llm_api_key)

    def require_places(self) -> None:
        if not self.google_places_api_key:
            raise ValueError("Google Places API key not configured")

    def require_distance_matrix(self) -> None:
        if not self.distance_matrix_key:
            raise ValueError("Google Distance Matrix API key not configured")

    def require_llm(self) -> None:
        if not self.llm_enabled:
            raise ValueError("LLM provider not configured")

    def log_summary(self) -> str:
        return (
            "places=%s distance_matrix=%s base=%s timeout=%s radius=%s/%s llm=%s model=%s api_key=%s"
            % (
                bool(self.google_places_api_key),
                bool(self.distance_matrix_key),
                self.google_maps_base_url,
                self.google_timeout,
                self.nearby_radius_m,
                self.plan_radius_m,
                self.llm_provider or "unset",
                self.llm_model_id or self.local_llm or "default",
                mask_secret(self.google_places_api_key),
            )
        )

    def sanitized_ollama_url(self) -> str:
        base = (self.ollama_base_url or "http://localhost:11434").rstrip("/")
        if not base.endswith("/v1"):
            base = f"{base}/v1"
        return base
