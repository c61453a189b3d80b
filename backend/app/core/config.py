"""
Configuration module for the Meal Plan API.
Loads settings from environment variables.
"""
from typing import List
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: str = "http://localhost:3000"
    log_level: str = "INFO"

    # Database (use relative path or set via environment variable)
    database_url: str = "sqlite:///./mealplans.db"

    # Recipe catalog (Spoonacular-compatible API)
    catalog_base_url: str = "https://api.spoonacular.com/recipes"
    catalog_api_keys: str = ""  # Comma separated; one is picked per call
    catalog_key_policy: str = "random"  # "random" or "first"
    catalog_timeout_seconds: float = 5.0

    # Point budget against the catalog
    daily_point_limit: float = 150
    max_points_per_plan: float = 30
    search_base_points: float = 5
    search_points_per_item: float = 0.5
    detail_points: float = 1

    # Caches (seconds)
    search_cache_ttl: int = 86400
    detail_cache_ttl: int = 86400
    cache_check_period: int = 3600

    # Plan generation
    plan_default_days: int = 7
    plan_max_days: int = 14
    plan_trigger_delay_seconds: float = 1.0

    # Recovery sweep for plans left pending
    recovery_interval_seconds: int = 1800
    recovery_batch_size: int = 3
    claim_ttl_seconds: int = 3600

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def api_keys(self) -> List[str]:
        return [key.strip() for key in self.catalog_api_keys.split(",") if key.strip()]

    @property
    def allowed_origins(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
