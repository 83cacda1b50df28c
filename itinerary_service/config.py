"""Service configuration loaded from environment variables."""
from __future__ import annotations

import os
from typing import List, Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment.

    Values are read when the instance is created, so tests can set
    environment variables (or pass keyword overrides) and build a fresh
    ``Settings()``.
    """

    def __init__(self, **overrides):
        # Completion service
        self.OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
        self.OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
        self.OPENAI_MAX_TOKENS: int = int(os.getenv("OPENAI_MAX_TOKENS", "4000"))
        self.OPENAI_TEMPERATURE: float = float(os.getenv("OPENAI_TEMPERATURE", "0.2"))
        self.GENERATION_TIMEOUT_S: float = float(os.getenv("GENERATION_TIMEOUT_S", "18"))
        self.ADAPTATION_TIMEOUT_S: float = float(os.getenv("ADAPTATION_TIMEOUT_S", "5"))
        self.ADAPTATION_MAX_TOKENS: int = int(os.getenv("ADAPTATION_MAX_TOKENS", "1500"))

        # Caching
        self.REDIS_URL: Optional[str] = os.getenv("REDIS_URL") or None
        self.REDIS_KEY_PREFIX: str = os.getenv("REDIS_KEY_PREFIX", "trip:")
        self.LOCAL_CACHE_CAPACITY: int = int(os.getenv("LOCAL_CACHE_CAPACITY", "50"))
        self.CACHE_LOOKUP_ORDER: str = os.getenv("CACHE_LOOKUP_ORDER", "shared_first")
        self.TEMPLATE_CACHE_TTL: int = int(os.getenv("TEMPLATE_CACHE_TTL", "7200"))
        self.AI_CACHE_TTL: int = int(os.getenv("AI_CACHE_TTL", "3600"))
        self.FALLBACK_CACHE_TTL: int = int(os.getenv("FALLBACK_CACHE_TTL", "600"))

        # Place lookup / enrichment
        self.GOOGLE_PLACES_API_KEY: str = (
            os.getenv("GOOGLE_PLACES_API_KEY") or os.getenv("GOOGLE_MAPS_API_KEY") or ""
        )
        self.ENRICHMENT_ENABLED: bool = _env_bool("ENRICHMENT_ENABLED", "true")
        self.ENRICHMENT_CONCURRENCY: int = int(os.getenv("ENRICHMENT_CONCURRENCY", "5"))
        self.PLACES_TIMEOUT_S: float = float(os.getenv("PLACES_TIMEOUT_S", "5"))

        # Orchestration
        self.SINGLE_FLIGHT_ENABLED: bool = _env_bool("SINGLE_FLIGHT_ENABLED", "false")

        # API
        self.ALLOWED_ORIGINS: str = os.getenv("ITINERARY_ALLOWED_ORIGINS") or "*"

        for name, value in overrides.items():
            if not hasattr(self, name):
                raise AttributeError(f"Unknown setting {name!r}")
            setattr(self, name, value)

    @property
    def allowed_origins_list(self) -> List[str]:
        """Get CORS origins as a list"""
        origins = [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]
        return origins or ["*"]

    @property
    def local_cache_first(self) -> bool:
        return self.CACHE_LOOKUP_ORDER.strip().lower() == "local_first"


# Global settings instance
settings = Settings()
