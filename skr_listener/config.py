"""Configuration management with Pydantic Settings + optional YAML."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ListenerConfig(BaseModel):
    bind: str = "0.0.0.0"
    port: int = 8082
    # Literal path segment between version and "event"; empty accepts any component
    component_name: str = "skr"
    shutdown_timeout: float = 60.0
    send_timeout: float | None = None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SKR_LISTENER_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    listener: ListenerConfig = Field(default_factory=ListenerConfig)
    log_level: str = "INFO"
    log_json: bool = False


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from env vars, optionally overlaying a YAML config."""
    yaml_data: dict[str, Any] = {}

    if config_path is None:
        config_path = os.environ.get("SKR_LISTENER_CONFIG")

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                yaml_data = yaml.safe_load(f) or {}

    # Init kwargs outrank env vars in pydantic-settings, so env values are
    # merged over the YAML before construction.
    env_settings = Settings()
    env_overrides = env_settings.model_dump(exclude_unset=True)
    return Settings(**_deep_merge(yaml_data, env_overrides))


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result
