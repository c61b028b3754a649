"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "VDESK_"
DEFAULT_CONFIG_PATH = Path("~/.config/vector-desk/config.yaml")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("cache", "documents_stale_seconds"): "documents_stale_seconds",
    ("cache", "collections_stale_seconds"): "collections_stale_seconds",
    ("documents", "default_n_results"): "default_n_results",
    ("documents", "list_limit"): "list_limit",
    ("copy", "batch_size"): "copy_batch_size",
    ("bridge", "host"): "bridge_host",
    ("bridge", "port"): "bridge_port",
    ("logging", "level"): "log_level",
    ("logging", "json"): "log_json",
}


class EmbeddingOverride(BaseModel):
    type: str
    model_name: str | None = None
    url: str | None = None
    account_id: str | None = None


class ConnectionProfile(BaseModel):
    """A saved connection to a vector database server."""

    id: str
    name: str
    url: str = "http://localhost:8000"
    tenant: str | None = None
    database: str | None = None
    api_key: str | None = None
    embedding_overrides: dict[str, EmbeddingOverride] = Field(default_factory=dict)


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    profiles: list[ConnectionProfile] = Field(default_factory=list)
    default_profile: str | None = None
    documents_stale_seconds: float = 15.0
    collections_stale_seconds: float = 120.0
    default_n_results: int = 10
    list_limit: int = 300
    copy_batch_size: int = 100
    bridge_host: str = "127.0.0.1"
    bridge_port: int = 5180
    log_level: str = "INFO"
    log_json: bool = True

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("copy_batch_size", "list_limit", "default_n_results")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value

    def get_profile(self, profile_id: str) -> ConnectionProfile | None:
        for profile in self.profiles:
            if profile.id == profile_id:
                return profile
        return None

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names.

    ``profiles`` is a list and passes through untouched.
    """
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map environment variables with VDESK_ prefix into Settings fields."""
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name == "profiles":
            continue
        if field_name in Settings.model_fields:
            overrides[field_name] = value
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = ["ConnectionProfile", "EmbeddingOverride", "Settings", "get_settings"]
