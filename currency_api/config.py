"""Configuration management for the currency API service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .database import resolve_database_path
from .exchange import DEFAULT_TIMEOUT

DEFAULT_UPSTREAM_URL = "https://api.freecurrencyapi.com/v1"

# YAML key -> environment variable
_ENV_KEYS: Dict[str, str] = {
    "secret_key": "CURRENCY_API_SECRET_KEY",
    "upstream_url": "CURRENCY_API_UPSTREAM_URL",
    "upstream_api_key": "CURRENCY_API_UPSTREAM_KEY",
    "upstream_timeout": "CURRENCY_API_UPSTREAM_TIMEOUT",
    "database_path": "CURRENCY_API_DB_PATH",
}


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, read once at startup."""

    secret_key: str
    upstream_api_key: str
    upstream_url: str = DEFAULT_UPSTREAM_URL
    upstream_timeout: float = DEFAULT_TIMEOUT
    database_path: Path = resolve_database_path(None)

    @staticmethod
    def from_dict(data: Mapping[str, object]) -> "Settings":
        """Create :class:`Settings` from raw values, validating required fields."""

        missing = [
            _ENV_KEYS[key]
            for key in ("secret_key", "upstream_api_key")
            if not str(data.get(key) or "").strip()
        ]
        if missing:
            raise ValueError(f"Missing required configuration: {', '.join(missing)}")

        raw_timeout = data.get("upstream_timeout")
        try:
            timeout = float(raw_timeout) if raw_timeout not in (None, "") else DEFAULT_TIMEOUT
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid upstream timeout: {raw_timeout!r}") from exc
        if timeout <= 0:
            raise ValueError("Upstream timeout must be positive")

        raw_db_path = data.get("database_path")
        return Settings(
            secret_key=str(data["secret_key"]).strip(),
            upstream_api_key=str(data["upstream_api_key"]).strip(),
            upstream_url=str(data.get("upstream_url") or DEFAULT_UPSTREAM_URL).strip(),
            upstream_timeout=timeout,
            database_path=resolve_database_path(str(raw_db_path) if raw_db_path else None),
        )


def load_config_file(config_path: Path) -> Dict[str, object]:
    """Load settings from a YAML mapping."""

    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, dict):
        raise ValueError("Configuration file must contain a mapping of settings")
    unknown = set(raw) - set(_ENV_KEYS)
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
    return dict(raw)


def _collect_values(
    environ: Optional[Mapping[str, str]],
    config_path: Optional[Path],
) -> Dict[str, object]:
    env = os.environ if environ is None else environ

    if config_path is None and env.get("CURRENCY_API_CONFIG"):
        config_path = Path(env["CURRENCY_API_CONFIG"]).expanduser()

    values: Dict[str, object] = {}
    if config_path is not None:
        values.update(load_config_file(config_path))

    for key, env_name in _ENV_KEYS.items():
        value = env.get(env_name)
        if value:
            values[key] = value
    return values


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    *,
    config_path: Optional[Path] = None,
) -> Settings:
    """Build settings from an optional YAML file, overridden by environment variables."""

    return Settings.from_dict(_collect_values(environ, config_path))


def load_database_path(
    environ: Optional[Mapping[str, str]] = None,
    *,
    config_path: Optional[Path] = None,
) -> Path:
    """Resolve only the database path, so maintenance commands work without API secrets."""

    raw = _collect_values(environ, config_path).get("database_path")
    return resolve_database_path(str(raw) if raw else None)


__all__ = [
    "DEFAULT_UPSTREAM_URL",
    "Settings",
    "load_config_file",
    "load_database_path",
    "load_settings",
]
