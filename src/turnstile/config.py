"""Configuration settings for Turnstile."""

from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PolicyOverride(BaseModel):
    """Partial policy values sourced from the environment at boot."""

    limit: int | None = None
    window_ms: int | None = Field(None, alias="windowMs")
    key_prefix: str | None = Field(None, alias="keyPrefix")

    model_config = ConfigDict(populate_by_name=True)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_prefix="TURNSTILE_", env_file=".env")

    # Server
    host: str = "127.0.0.1"  # Use TURNSTILE_HOST=0.0.0.0 for Docker
    port: int = 8080
    debug: bool = False

    # Admission
    sweep_interval_seconds: float = Field(60.0, gt=0)
    unknown_identity: str = Field("unknown", min_length=1)
    # e.g. TURNSTILE_POLICY_OVERRIDES='{"search": {"limit": 120}}'
    policy_overrides: dict[str, PolicyOverride] = Field(default_factory=dict)

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    # Metrics
    metrics_enabled: bool = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
