from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


def _config_path() -> Path:
    override = os.getenv("CLARIFIA_CONFIG")
    if override:
        return Path(override)
    root = Path(__file__).resolve().parents[2]  # project root
    return root / "config.yaml"


def _load_yaml_config(path: Optional[Path] = None) -> dict:
    cfg_path = path or _config_path()
    if not cfg_path.exists():
        return {}
    with open(cfg_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _flatten_yaml(cfg: dict) -> dict[str, Any]:
    """
    Map the sectioned config.yaml onto flat Settings field names.
    """
    server = cfg.get("server") or {}
    openai = cfg.get("openai") or {}
    limits = cfg.get("limits") or {}

    values = {
        "host": server.get("host"),
        "port": server.get("port"),
        "cors_origins": server.get("cors_origins"),
        "log_level": server.get("log_level"),
        "openai_model": openai.get("model"),
        "openai_base_url": openai.get("base_url"),
        "max_output_tokens": openai.get("max_output_tokens"),
        "openai_timeout_seconds": openai.get("timeout_seconds"),
        "strict_output_schema": openai.get("strict_output_schema"),
        "max_text_chars": limits.get("max_text_chars"),
        "max_body_bytes": limits.get("max_body_bytes"),
        "rate_limit": limits.get("rate_limit"),
        "rate_limit_enabled": limits.get("rate_limit_enabled"),
    }
    return {k: v for k, v in values.items() if v is not None}


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Lowest-priority source backed by config.yaml (secrets never live there)."""

    def get_field_value(self, field, field_name):
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        return _flatten_yaml(_load_yaml_config())


class Settings(BaseSettings):
    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"

    # Secrets (optional at startup, enforced per request)
    openai_api_key: Optional[str] = None
    clarifia_app_key: Optional[str] = None

    # Upstream
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str = "https://api.openai.com/v1"
    max_output_tokens: int = 900
    openai_timeout_seconds: float = 60.0
    strict_output_schema: bool = False

    # Limits
    max_text_chars: int = 12_000
    max_body_bytes: int = 2 * 1024 * 1024
    rate_limit: str = "20/minute"
    rate_limit_enabled: bool = True

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )

    def missing_secrets(self) -> list[str]:
        missing = []
        if not self.openai_api_key:
            missing.append("OPENAI_API_KEY")
        if not self.clarifia_app_key:
            missing.append("CLARIFIA_APP_KEY")
        return missing
