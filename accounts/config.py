"""Runtime configuration for the account store."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .database import resolve_database_path
from .passwords import DEFAULT_ROUNDS, validate_rounds

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


@dataclass(frozen=True)
class Settings:
    """Resolved settings for the database, hasher and HTTP listener."""

    database_path: Path
    bcrypt_rounds: int = DEFAULT_ROUNDS
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


def _parse_int(value: object, name: str) -> int:
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def load_config_file(config_path: Path) -> Dict[str, object]:
    """Load a YAML mapping of settings from ``config_path``."""
    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Configuration file {config_path} must contain a mapping")
    return raw


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings` from an optional YAML file and the environment.

    ``ACCOUNTS_CONFIG`` names the YAML file. ``ACCOUNTS_DB_PATH``,
    ``ACCOUNTS_BCRYPT_ROUNDS``, ``ACCOUNTS_HOST`` and ``ACCOUNTS_PORT`` override
    the values it provides.
    """

    env = os.environ if environ is None else environ

    file_values: Dict[str, object] = {}
    config_env = env.get("ACCOUNTS_CONFIG")
    if config_env:
        file_values = load_config_file(Path(config_env).expanduser())

    db_value = env.get("ACCOUNTS_DB_PATH") or file_values.get("database_path")
    rounds_value = env.get("ACCOUNTS_BCRYPT_ROUNDS") or file_values.get("bcrypt_rounds", DEFAULT_ROUNDS)
    host_value = env.get("ACCOUNTS_HOST") or file_values.get("host", DEFAULT_HOST)
    port_value = env.get("ACCOUNTS_PORT") or file_values.get("port", DEFAULT_PORT)

    port = _parse_int(port_value, "port")
    if not 0 < port < 65536:
        raise ValueError(f"port must be between 1 and 65535, got {port}")

    return Settings(
        database_path=resolve_database_path(str(db_value) if db_value else None),
        bcrypt_rounds=validate_rounds(_parse_int(rounds_value, "bcrypt_rounds")),
        host=str(host_value).strip() or DEFAULT_HOST,
        port=port,
    )


__all__ = ["Settings", "load_config_file", "load_settings"]
