"""
Configuration management for the Charity Shelter API server.

Non-secret configuration loaded from YAML file, secrets from environment variables.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, RedisDsn
from pydantic_settings import BaseSettings, SettingsConfigDict


def yaml_config_settings_source() -> dict[str, Any]:
    """Load configuration from YAML file."""
    config_path = Path("/etc/charityshelter/config.yaml")
    if config_path.exists():
        with open(config_path) as f:
            return yaml.safe_load(f) or {}
    return {}


# --- Auth Configuration ---


class AuthConfig(BaseModel):
    """API key authentication configuration."""

    api_key_header: str = Field(default="X-API-Key", description="Header carrying the API key")
    dev_api_key: str = Field(
        default="",
        description="Development-only API key that authenticates as a SuperAdmin. "
        "Leave empty in production.",
    )
    api_key_max_ttl_hours: int = Field(
        default=0,
        description="Maximum API key lifetime in hours. 0 = no limit.",
    )


# --- RBAC Configuration ---


class RBACConfig(BaseModel):
    """Role-based access control configuration."""

    seed_system_roles: bool = Field(
        default=True,
        description="Seed the system role registry into an empty role store at startup",
    )
    role_update_retries: int = Field(
        default=3,
        description="Optimistic-lock retries for concurrent role updates",
    )


# --- CORS Configuration ---


class CORSConfig(BaseModel):
    """CORS (Cross-Origin Resource Sharing) configuration."""

    allow_origins: list[str] = Field(
        default_factory=list,
        description="Allowed origins. Empty list means CORS middleware is disabled.",
    )
    allow_credentials: bool = Field(
        default=True, description="Allow credentials (cookies, auth headers)"
    )
    allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        description="Allowed HTTP methods",
    )
    allow_headers: list[str] = Field(
        default=["Content-Type", "Authorization", "X-API-Key", "X-Request-ID"],
        description="Allowed request headers",
    )


# --- Main Settings ---


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="CHARITYSHELTER_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="charityshelter-api")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=True, description="JSON logging in production")

    # Redis (key-value store for users, roles and API keys)
    redis_url: RedisDsn = Field(
        default="redis://localhost:6379",
        description="Redis connection URL",
    )
    kv_prefix: str = Field(default="cs:", description="Prefix for every key written to Redis")

    # Authentication
    auth: AuthConfig = Field(default_factory=AuthConfig)

    # RBAC
    rbac: RBACConfig = Field(default_factory=RBACConfig)

    # CORS
    cors: CORSConfig = Field(default_factory=CORSConfig)

    # API
    api_prefix: str = Field(default="/api/v1")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Customize settings sources: env vars override YAML config."""
        return (
            init_settings,
            env_settings,
            yaml_config_settings_source,
            dotenv_settings,
            file_secret_settings,
        )


# Global settings instance
settings = Settings()
