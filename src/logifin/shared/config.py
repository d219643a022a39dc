"""Typed configuration objects and loader for the Logifin stack."""

from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import YamlConfigSettingsSource

from logifin.domain.errors import ConfigError

__all__ = [
    "AppConfig",
    "ApiConfig",
    "AnalyticsConfig",
    "LoggingConfig",
    "load_config",
]


class ApiConfig(BaseModel):
    base_url: str = Field(default="http://localhost:8000/api")
    token: str | None = None
    timeout: float = 30
    max_retries: int = 3
    retry_wait_seconds: float = 0.5
    parcels_page_size: int = 1000


class AnalyticsConfig(BaseModel):
    target_currency: str = Field(default="CFA")
    max_workers: int = 8
    default_exchange_rate: Decimal = Decimal("63")
    revenue_months: int = 12
    treasury_days: int = 30
    top_n: int = 5
    recent_items: int = 10
    zero_fill_missing_snapshots: bool = False

    @field_validator("target_currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.strip().upper()


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(default="json")
    directory: str = Field(default="./logs")
    max_file_size_mb: int = 10
    backup_count: int = 5
    console_output: bool = True


class AppConfig(BaseSettings):
    """Application configuration loaded from YAML, env vars, and defaults."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="LOGIFIN_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    api: ApiConfig = Field(default_factory=ApiConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    _yaml_env_var: ClassVar[str] = "LOGIFIN_CONFIG_FILE"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        yaml_path = cls._determine_yaml_path()
        yaml_source = ()
        if yaml_path is not None:
            yaml_source = (YamlConfigSettingsSource(settings_cls, yaml_file=yaml_path),)

        return (
            init_settings,
            env_settings,
            dotenv_settings,
            *yaml_source,
            file_secret_settings,
        )

    @classmethod
    def _determine_yaml_path(cls) -> Path | None:
        override = os.getenv(cls._yaml_env_var)
        if override:
            candidate = Path(override).expanduser()
            if candidate.is_file():
                return candidate
            raise ConfigError(f"{cls._yaml_env_var} points to a missing file: {override}")
        repo_root = Path(__file__).resolve().parents[3]
        candidates = [
            repo_root / "config" / "config.yaml",
            repo_root / "config.yaml",
        ]
        for path in candidates:
            if path.is_file():
                return path
        return None


_CONFIG_CACHE: AppConfig | None = None


def _validate(config: AppConfig) -> AppConfig:
    analytics = config.analytics
    if analytics.default_exchange_rate <= 0:
        raise ConfigError("analytics.default_exchange_rate must be positive")
    if analytics.target_currency not in {"CFA", "MAD", "XOF"}:
        raise ConfigError(f"Unsupported analytics.target_currency: {analytics.target_currency}")
    if analytics.max_workers < 1:
        raise ConfigError("analytics.max_workers must be at least 1")
    if analytics.revenue_months < 1 or analytics.treasury_days < 1:
        raise ConfigError("analytics.revenue_months and analytics.treasury_days must be at least 1")
    return config


def load_config(*, reload: bool = False) -> AppConfig:
    """Load the application configuration with caching."""

    global _CONFIG_CACHE
    if _CONFIG_CACHE is None or reload:
        _CONFIG_CACHE = _validate(AppConfig())
    return _CONFIG_CACHE
