"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (TREASUREPROXY__SERVER__PORT=8080)
  2. treasureproxy.yaml     (searched in cwd, then ~/.config/treasureproxy/)
  3. Hardcoded defaults

The config file is optional; every field has a default.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)


def _find_config_file() -> str | None:
    """Return the path of the first treasureproxy.yaml found, or None."""
    candidates = [
        Path("treasureproxy.yaml"),
        Path.home() / ".config" / "treasureproxy" / "treasureproxy.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: list[str] = ["*"]


class UpstreamSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    url_template: str = "https://a.windbornesystems.com/treasure/{id}.json"
    timeout_seconds: float = 10.0
    user_agent: str = "treasureproxy/0.1"

    @field_validator("url_template")
    @classmethod
    def validate_url_template(cls, v: str) -> str:
        if "{id}" not in v:
            raise ValueError("url_template must contain an '{id}' placeholder")
        if not v.startswith(("http://", "https://")):
            raise ValueError("url_template must use http or https scheme")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout_seconds must be > 0")
        return v


class CacheSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Retention age and bucket ceiling are both 24 by default; they can be tuned separately.
    retention_hours: float = 24
    max_buckets: int = 24
    sweep_interval_seconds: float = 3600

    @field_validator("retention_hours", "sweep_interval_seconds")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("max_buckets")
    @classmethod
    def validate_max_buckets(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_buckets must be >= 1")
        return v


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: TREASUREPROXY__CACHE__MAX_BUCKETS=48
        env_prefix="TREASUREPROXY__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    upstream: UpstreamSettings = UpstreamSettings()
    cache: CacheSettings = CacheSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
