"""Application configuration."""

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    openai_api_key: str
    openai_model: str = "gpt-5.2"
    openai_reasoning_effort: str | None = "medium"
    openai_store: bool = False
    off_base_url: str = "https://world.openfoodfacts.org"
    off_user_agent: str = "food-capture/0.1"
    image_max_dimension: int = Field(default=1024, gt=0)
    image_quality: float = Field(default=0.7, gt=0.0, le=1.0)
    min_weight_g: float = Field(default=10.0, gt=0.0)
    max_weight_g: float = Field(default=1000.0, gt=0.0)
    day_check_interval_seconds: float = Field(default=60.0, gt=0.0)
    product_cache_ttl_seconds: int = 86400
    debug_logging: bool = False
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
