"""Centralized application configuration with schema validation.

This module is intentionally compatibility-first:
- Supports flat environment names (for example ``DB_HOST``).
- Supports nested names (for example ``DB__HOST``) for consistency.
- Optionally reads a local ``.env`` file before process env values.

CLI flags (``-u``/``-p``/``-h`` and friends) take precedence over anything
loaded here; see ``cli.py``.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path
from threading import Lock

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


class DatabaseConfig(BaseModel):
    """Database connection settings."""

    model_config = ConfigDict(frozen=True)

    url: str | None = Field(default=None, description="Postgres connection URL")
    host: str = Field(default="localhost")
    port: int = Field(default=5432, ge=1, le=65535)
    user: str | None = Field(default=None)
    password: str | None = Field(default=None)
    name: str = Field(default="postgres")
    connect_timeout: int = Field(default=5, ge=1, le=60)

    @field_validator("user", "password", "url", mode="before")
    @classmethod
    def _normalize_optional_text(cls, value: object) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None


class LoggingSettings(BaseModel):
    """Repository-wide logging settings."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)
    override_root_handlers: bool = Field(default=False)

    @field_validator("level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        text = str(value or "").strip().upper()
        if text in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            return text
        return "INFO"


class IngestConfig(BaseModel):
    """CSV ingestion defaults."""

    model_config = ConfigDict(frozen=True)

    table: str = Field(default="users")
    encoding: str = Field(default="utf-8-sig")
    delimiter: str = Field(default=",", min_length=1, max_length=1)

    @field_validator("table")
    @classmethod
    def _validate_table(cls, value: str) -> str:
        """Table names are interpolated into DDL/DML, so only plain identifiers pass."""
        text = str(value or "").strip()
        if not _IDENTIFIER_RE.match(text):
            raise ValueError(f"ingest.table must be a plain SQL identifier, got {value!r}")
        return text

    @field_validator("encoding")
    @classmethod
    def _validate_encoding(cls, value: str) -> str:
        import codecs

        text = str(value or "").strip() or "utf-8-sig"
        try:
            codecs.lookup(text)
        except LookupError as exc:
            raise ValueError(f"unknown encoding: {text!r}") from exc
        return text


class Settings(BaseModel):
    """Top-level settings model."""

    model_config = ConfigDict(frozen=True)

    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    ingest: IngestConfig = Field(default_factory=IngestConfig)

    @classmethod
    def from_env(
        cls,
        *,
        env: Mapping[str, str] | None = None,
        env_file: str = ".env",
    ) -> Settings:
        """Build settings from `.env` then environment variables."""
        runtime_env = os.environ if env is None else env
        merged_env = _merge_env(_load_dotenv(Path(env_file)), runtime_env)
        payload = _build_payload(merged_env)
        return cls.model_validate(payload)


def _load_dotenv(path: Path) -> dict[str, str]:
    """Parse a minimal `.env` file format."""
    if not path.exists() or not path.is_file():
        return {}

    values: dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, raw_value = line.split("=", 1)
        key_clean = key.strip()
        value = raw_value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        if key_clean:
            values[key_clean] = value
    return values


def _merge_env(dotenv_values: Mapping[str, str], runtime_env: Mapping[str, str]) -> dict[str, str]:
    """Return env map where process env overrides `.env` values."""
    merged = {str(k): str(v) for k, v in dotenv_values.items()}
    for key, value in runtime_env.items():
        merged[str(key)] = str(value)
    return merged


def _first_non_empty(env: Mapping[str, str], *keys: str) -> str | None:
    """Return the first non-empty value for the provided keys."""
    for key in keys:
        value = str(env.get(key, "")).strip()
        if value:
            return value
    return None


def _build_payload(env: Mapping[str, str]) -> dict[str, object]:
    """Build nested settings payload from env values."""
    db = {
        "url": _first_non_empty(env, "DB__URL", "DB_URL"),
        "host": _first_non_empty(env, "DB__HOST", "DB_HOST", "PGHOST"),
        "port": _first_non_empty(env, "DB__PORT", "DB_PORT", "PGPORT"),
        "user": _first_non_empty(env, "DB__USER", "DB_USER", "PGUSER"),
        "password": _first_non_empty(env, "DB__PASSWORD", "DB_PASSWORD", "PGPASSWORD"),
        "name": _first_non_empty(env, "DB__NAME", "DB_NAME", "PGDATABASE"),
        "connect_timeout": _first_non_empty(env, "DB__CONNECT_TIMEOUT", "DB_CONNECT_TIMEOUT"),
    }
    logging_settings = {
        "level": _first_non_empty(env, "LOGGING__LEVEL", "USER_UPLOAD_LOG_LEVEL"),
        "json_logs": _first_non_empty(env, "LOGGING__JSON_LOGS", "USER_UPLOAD_LOG_JSON"),
        "override_root_handlers": _first_non_empty(
            env, "LOGGING__OVERRIDE_ROOT_HANDLERS", "USER_UPLOAD_LOG_OVERRIDE"
        ),
    }
    ingest = {
        "table": _first_non_empty(env, "INGEST__TABLE", "INGEST_TABLE"),
        "encoding": _first_non_empty(env, "INGEST__ENCODING", "INGEST_ENCODING"),
        # Not stripped: a tab delimiter is a legitimate value.
        "delimiter": env.get("INGEST__DELIMITER") or env.get("INGEST_DELIMITER") or None,
    }
    return {
        "db": {k: v for k, v in db.items() if v is not None},
        "logging": {k: v for k, v in logging_settings.items() if v is not None},
        "ingest": {k: v for k, v in ingest.items() if v is not None},
    }


_SETTINGS_LOCK = Lock()
_SETTINGS_CACHE: Settings | None = None


def get_settings(*, reload: bool = False) -> Settings:
    """Return cached settings, optionally forcing reload from env."""
    global _SETTINGS_CACHE
    with _SETTINGS_LOCK:
        if reload or _SETTINGS_CACHE is None:
            _SETTINGS_CACHE = Settings.from_env()
        return _SETTINGS_CACHE


def clear_settings_cache() -> None:
    """Clear in-process settings cache."""
    global _SETTINGS_CACHE
    with _SETTINGS_LOCK:
        _SETTINGS_CACHE = None


__all__ = [
    "DatabaseConfig",
    "IngestConfig",
    "LoggingSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
    "ValidationError",
]
