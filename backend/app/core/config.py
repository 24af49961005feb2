"""Application configuration using pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CIMIENTO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Cimiento"
    version: str = "0.3.0"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=8080, description="Server port")

    # Paths
    config_path: Path = Field(
        default=Path("/config"),
        description="Path for configuration files and database",
    )
    storage_path: Path = Field(
        default=Path("/storage"),
        description="Public disk for uploaded setting files",
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./config/cimiento.db",
        description="Database connection URL",
    )

    # CORS
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )

    # Encryption for settings flagged is_encrypted
    encryption_key: str | None = Field(
        default=None,
        description="Fernet key used to encrypt sensitive setting values",
    )

    # Settings subsystem
    settings_cache_ttl: int = Field(
        default=300,
        ge=0,
        le=86400,
        description="Seconds a cached setting value stays valid",
    )
    history_limit: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Maximum history entries returned per setting",
    )
    site_name_default: str = Field(
        default="MDR Construcciones",
        description="Site name used when the site_name setting is missing",
    )

    @property
    def db_path(self) -> Path:
        """Get the SQLite database file path."""
        return self.config_path / "cimiento.db"

    @property
    def uploads_path(self) -> Path:
        """Get the directory where setting files are stored."""
        return self.storage_path / "settings"

    @property
    def preferences_path(self) -> Path:
        """Get the directory for per-admin filter preferences."""
        return self.config_path / "preferences"


# Global settings instance
settings = Settings()
