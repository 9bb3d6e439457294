"""Configuration loader for the backend invoice store client."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from cinebill.core.errors import ConfigError
from cinebill.core.profiles import load_settings


DEFAULT_BASE_URL = "http://localhost:5000"
DEFAULT_TIMEOUT = 15.0
DEFAULT_ATTEMPTS = 3
DEFAULT_BACKOFF_MS = 2000
DEFAULT_MAX_BACKOFF_MS = 8000

BASE_URL_ENV = "CINEBILL_API_BASE_URL"
TIMEOUT_ENV = "CINEBILL_API_TIMEOUT_SEC"
RETRY_ATTEMPTS_ENV = "CINEBILL_API_RETRIES"


@dataclass(slots=True)
class RetryConfig:
    """Retry parameters for store HTTP requests."""

    max_attempts: int = DEFAULT_ATTEMPTS
    backoff_ms: int = DEFAULT_BACKOFF_MS
    max_backoff_ms: int = DEFAULT_MAX_BACKOFF_MS

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "RetryConfig":
        if not data:
            return cls()
        return cls(
            max_attempts=int(data.get("max_attempts", DEFAULT_ATTEMPTS)),
            backoff_ms=int(data.get("backoff_ms", DEFAULT_BACKOFF_MS)),
            max_backoff_ms=int(data.get("max_backoff_ms", DEFAULT_MAX_BACKOFF_MS)),
        )


@dataclass(slots=True)
class StoreConfig:
    """Resolved configuration for the invoice store."""

    base_url: str = DEFAULT_BASE_URL
    timeout_sec: float = DEFAULT_TIMEOUT
    retries: RetryConfig = field(default_factory=RetryConfig)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "StoreConfig":
        """Create a configuration from the ``store`` section, applying env overrides."""

        data = data or {}
        retries_raw = data.get("retries")
        retries = RetryConfig.from_mapping(retries_raw if isinstance(retries_raw, Mapping) else None)
        attempts = _read_env_int(RETRY_ATTEMPTS_ENV)
        if attempts is not None:
            retries.max_attempts = attempts
        timeout = _read_env_float(TIMEOUT_ENV)
        try:
            timeout_sec = timeout if timeout is not None else float(data.get("timeout_sec", DEFAULT_TIMEOUT))
        except (TypeError, ValueError) as exc:
            raise ConfigError("store.timeout_sec must be a number") from exc
        base_url = _read_env(BASE_URL_ENV) or str(data.get("base_url") or DEFAULT_BASE_URL)
        return cls(base_url=base_url.rstrip("/"), timeout_sec=timeout_sec, retries=retries)

    @classmethod
    def from_profile(cls, *, config_path: str | Path | None = None) -> "StoreConfig":
        return cls.from_mapping(load_settings(config_path).store)


def _read_env(key: str) -> str | None:
    value = os.getenv(key)
    if value is None:
        return None
    return value.strip()


def _read_env_int(key: str) -> int | None:
    value = _read_env(key)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError as exc:  # noqa: BLE001 - configuration validation
        raise ConfigError(f"Environment variable {key} must be an integer") from exc


def _read_env_float(key: str) -> float | None:
    value = _read_env(key)
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError as exc:  # noqa: BLE001 - configuration validation
        raise ConfigError(f"Environment variable {key} must be a number") from exc
