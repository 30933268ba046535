"""Udyam service configuration settings."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy.engine import URL

_PRODUCTION_ENVIRONMENTS: Final[set[str]] = {"prod", "production"}
_DEFAULT_ORIGINS: Final[list[str]] = ["http://localhost:3000", "http://127.0.0.1:3000"]

DEFAULT_FORM_URL: Final[str] = "https://udyamregistration.gov.in/UdyamRegistration.aspx"


def _int_env(var_name: str, default: int) -> int:
    raw = os.getenv(var_name, "").strip()
    return int(raw) if raw else default


class DatabaseConfig(BaseModel):
    """Relational store connection and pool parameters."""

    host: str = Field(default_factory=lambda: os.getenv("UDYAM_DB_HOST", "localhost"))
    port: int = Field(default_factory=lambda: _int_env("UDYAM_DB_PORT", 5432))
    user: str = Field(default_factory=lambda: os.getenv("UDYAM_DB_USER", "postgres"))
    password: str = Field(default_factory=lambda: os.getenv("UDYAM_DB_PASSWORD", ""))
    name: str = Field(default_factory=lambda: os.getenv("UDYAM_DB_NAME", "udyam"))
    pool_max_size: int = Field(default_factory=lambda: _int_env("UDYAM_DB_POOL_MAX", 10))
    connect_timeout_s: float = Field(
        default_factory=lambda: float(os.getenv("UDYAM_DB_CONNECT_TIMEOUT", "").strip() or 5)
    )
    idle_timeout_s: int = Field(default_factory=lambda: _int_env("UDYAM_DB_IDLE_TIMEOUT", 30))
    url: str | None = Field(default_factory=lambda: os.getenv("UDYAM_DATABASE_URL") or None)

    @field_validator("pool_max_size")
    @classmethod
    def _validate_pool_size(cls, value: int) -> int:
        if value < 1:
            raise ValueError("UDYAM_DB_POOL_MAX must be >= 1")
        return value

    @field_validator("connect_timeout_s", "idle_timeout_s")
    @classmethod
    def _validate_timeouts(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("database timeouts must be positive")
        return value

    def sqlalchemy_url(self) -> str | URL:
        """Return the URL handed to the engine; an explicit override wins."""
        if self.url:
            return self.url
        return URL.create(
            "postgresql+asyncpg",
            username=self.user,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=self.name,
        )


class BrowserConfig(BaseModel):
    """Browser layer configuration."""

    headless: bool = True
    viewport_width: int = 1280
    viewport_height: int = 720
    user_agent: str | None = None
    locale: str = "en-IN"


class ScraperConfig(BaseModel):
    """Where the form lives and where its field catalog is written."""

    target_url: str = Field(default_factory=lambda: os.getenv("UDYAM_FORM_URL", DEFAULT_FORM_URL))
    catalog_path: Path = Field(
        default_factory=lambda: Path(
            os.getenv("UDYAM_CATALOG_PATH", "./data/formFields.json")
        )
    )
    page_load_timeout_s: int = 30


class APIConfig(BaseModel):
    """HTTP surface, CORS policy and deployment mode from environment."""

    environment: str = Field(
        default_factory=lambda: os.getenv("UDYAM_ENV", "development").strip().lower()
    )
    host: str = Field(default_factory=lambda: os.getenv("UDYAM_HOST", "0.0.0.0"))
    port: int = Field(default_factory=lambda: _int_env("UDYAM_PORT", 3000))
    allowed_origins: list[str] = Field(
        default_factory=lambda: APIConfig.parse_allowed_origins(
            os.getenv("UDYAM_ALLOWED_ORIGINS", "")
        )
    )
    log_level: str = Field(default_factory=lambda: os.getenv("UDYAM_LOG_LEVEL", "INFO"))

    @property
    def is_production(self) -> bool:
        return self.environment in _PRODUCTION_ENVIRONMENTS

    @staticmethod
    def parse_allowed_origins(value: str) -> list[str]:
        if not value.strip():
            return list(_DEFAULT_ORIGINS)
        origins = [origin.strip().rstrip("/") for origin in value.split(",") if origin.strip()]
        if "*" in origins:
            raise ValueError("UDYAM_ALLOWED_ORIGINS cannot include '*'")
        return origins

    @field_validator("allowed_origins")
    @classmethod
    def _validate_allowed_origins(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("allowed_origins cannot be empty")
        for origin in value:
            parsed = urlparse(origin)
            if parsed.scheme not in {"http", "https"} or not parsed.netloc:
                raise ValueError(f"Invalid CORS origin: {origin}")
        return value

    @field_validator("port")
    @classmethod
    def _validate_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError("UDYAM_PORT must be between 1 and 65535")
        return value

    @model_validator(mode="after")
    def _require_explicit_origins_in_production(self) -> "APIConfig":
        if self.is_production and self.allowed_origins == _DEFAULT_ORIGINS:
            raise ValueError(
                "Production CORS configuration error: UDYAM_ALLOWED_ORIGINS must be set "
                "to a comma-separated list of trusted origins when UDYAM_ENV is production."
            )
        return self


class AppSettings(BaseModel):
    """Root configuration for the API process and the scraper."""

    api: APIConfig = Field(default_factory=APIConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    scraper: ScraperConfig = Field(default_factory=ScraperConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
