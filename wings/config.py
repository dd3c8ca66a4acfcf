"""Configuration loading for the Wings adapter.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
- Replace environment sniffing with explicit strictness flags
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support via python-dotenv.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Legacy store configuration
    store_backend: Literal["sqlite", "postgresql"] = Field(
        default="sqlite",
        description="Legacy record store backend type",
    )
    store_sqlite_path: str = Field(
        default="./data/records.db",
        description="SQLite database file path",
    )
    database_url: str = Field(
        default="",
        description="PostgreSQL connection URL",
    )
    store_pool_size: int = Field(
        default=5,
        description="Number of pooled store connections",
    )

    # Strictness
    strict_schema: bool = Field(
        default=False,
        description="Fail start-up when a configured model pair cannot be resolved",
    )
    strict_attributes: bool = Field(
        default=False,
        description="Reject attributes with no legacy counterpart instead of dropping them",
    )
    strict_registry: bool = Field(
        default=False,
        description="Reject conflicting registrations instead of replacing them",
    )

    # Model pairs, normalized "module:Class" -> legacy "module:Class"
    model_map: dict[str, str] = Field(
        default_factory=dict,
        description="Extra model pairs to register at start-up",
    )
    register_builtin_models: bool = Field(
        default=True,
        description="Register the built-in access control and collection pairs",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    # Development
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging",
    )

    @field_validator("store_pool_size")
    @classmethod
    def validate_pool_size(cls, v: int) -> int:
        """Ensure pool size is positive."""
        if v <= 0:
            raise ValueError("store_pool_size must be positive")
        return v

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Ensure a PostgreSQL URL uses a postgres scheme."""
        if v and not v.startswith(("postgresql://", "postgres://")):
            raise ValueError("database_url must start with postgresql:// or postgres://")
        return v

    @field_validator("model_map")
    @classmethod
    def validate_model_map(cls, v: dict[str, str]) -> dict[str, str]:
        """Ensure every model path has the module:Class form."""
        for path in (*v.keys(), *v.values()):
            module_name, sep, name = path.partition(":")
            if not (module_name and sep and name):
                raise ValueError(f"model_map path {path!r} must look like 'module:ClassName'")
        return v


def load_settings(env_file: str | None = None) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


__all__ = ["Settings", "load_settings"]
