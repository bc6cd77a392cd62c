"""
Global Configuration Settings for the Advice Engine
All server, matching and cache settings are defined here.
Pydantic v2 compatible.
"""

from pathlib import Path
from typing import Optional, List, Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache


class APISettings(BaseSettings):
    """API Server Configuration"""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    host: str = Field(default="0.0.0.0", validation_alias="API_HOST")
    port: int = Field(default=5001, validation_alias="API_PORT")
    debug: bool = Field(default=False, validation_alias="API_DEBUG")
    reload: bool = Field(default=False, validation_alias="API_RELOAD")
    workers: int = Field(default=1, validation_alias="API_WORKERS")

    # CORS
    cors_origins: List[str] = Field(default=["*"], validation_alias="CORS_ORIGINS")


class MatchingSettings(BaseSettings):
    """Rule matching and field discovery configuration"""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # What to do when the same mapping key appears in several flows
    field_collision_policy: Literal["last_wins", "first_wins"] = Field(
        default="last_wins", validation_alias="FIELD_COLLISION_POLICY"
    )

    # Advice below this weighted ratio is not considered applicable
    default_min_match_score: float = Field(
        default=0.5, ge=0.0, le=1.0, validation_alias="DEFAULT_MIN_MATCH_SCORE"
    )

    # Optional JSON file with additional concepts appended to the built-in registry
    concepts_extra_file: Optional[Path] = Field(default=None, validation_alias="CONCEPTS_EXTRA_FILE")


class CacheSettings(BaseSettings):
    """Caching Configuration"""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    enable_cache: bool = Field(default=True, validation_alias="ENABLE_CACHE")
    cache_ttl_seconds: int = Field(default=300, validation_alias="CACHE_TTL")
    max_cache_size: int = Field(default=1000, validation_alias="MAX_CACHE_SIZE")


class Settings(BaseSettings):
    """Main Settings Container"""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_name: str = Field(default="Advice Engine", validation_alias="APP_NAME")
    app_version: str = Field(default="1.0.0", validation_alias="APP_VERSION")
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # Sub-settings
    api: APISettings = Field(default_factory=APISettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Convenience function for accessing settings
settings = get_settings()
