"""Configuration loading: runtime settings from the environment, credentials from config.json."""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from netcup_acme.errors import ConfigError
from netcup_acme.models import Credentials, normalize_name

_NETCUP_ENDPOINT = "https://ccp.netcup.net/run/webservice/servers/endpoint.php?JSON"
_CONFIG_FILENAME = "config.json"
_DEFAULT_LOG_LEVEL = "INFO"
_DEFAULT_RETRY_ATTEMPTS = 3
_DEFAULT_RETRY_DELAY = 2.0


@dataclass(frozen=True)
class Settings:
    """Runtime settings loaded from environment variables."""

    config_path: Path
    endpoint: str = _NETCUP_ENDPOINT
    log_level: str = _DEFAULT_LOG_LEVEL
    retry_attempts: int = _DEFAULT_RETRY_ATTEMPTS
    retry_delay: float = _DEFAULT_RETRY_DELAY


@dataclass(frozen=True)
class HookConfig:
    """Contents of config.json."""

    credentials: Credentials
    zones: tuple[str, ...] = ()


def default_config_path() -> Path:
    """config.json next to the executable the host invoked."""
    return Path(sys.argv[0]).resolve().parent / _CONFIG_FILENAME


def load_settings() -> Settings:
    """Load and validate runtime settings from environment variables."""
    raw_path = os.environ.get("NETCUP_ACME_CONFIG")
    config_path = Path(raw_path) if raw_path else default_config_path()
    endpoint = os.environ.get("NETCUP_ACME_ENDPOINT", _NETCUP_ENDPOINT)

    log_level = os.environ.get("NETCUP_ACME_LOG_LEVEL", _DEFAULT_LOG_LEVEL).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"NETCUP_ACME_LOG_LEVEL is not a logging level, got: {log_level!r}")

    raw_attempts = os.environ.get("NETCUP_ACME_RETRY_ATTEMPTS", str(_DEFAULT_RETRY_ATTEMPTS))
    try:
        retry_attempts = int(raw_attempts)
    except ValueError:
        raise ConfigError(f"NETCUP_ACME_RETRY_ATTEMPTS must be an integer, got: {raw_attempts!r}")
    if retry_attempts < 1:
        raise ConfigError(f"NETCUP_ACME_RETRY_ATTEMPTS must be a positive integer, got: {retry_attempts}")

    raw_delay = os.environ.get("NETCUP_ACME_RETRY_DELAY", str(_DEFAULT_RETRY_DELAY))
    try:
        retry_delay = float(raw_delay)
    except ValueError:
        raise ConfigError(f"NETCUP_ACME_RETRY_DELAY must be a number, got: {raw_delay!r}")
    if retry_delay < 0:
        raise ConfigError(f"NETCUP_ACME_RETRY_DELAY must not be negative, got: {retry_delay}")

    return Settings(
        config_path=config_path,
        endpoint=endpoint,
        log_level=log_level,
        retry_attempts=retry_attempts,
        retry_delay=retry_delay,
    )


def _require_key(data: dict, name: str) -> str:
    value = data.get(name)
    if not isinstance(value, str) or not value:
        raise ConfigError(f"Required key {name} is missing or empty in config file")
    return value


def load_hook_config(path: Path) -> HookConfig:
    """Read credentials and optional zone list from a config.json file."""
    try:
        contents = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read config file {path}: {exc.strerror or exc}")
    try:
        data = json.loads(contents)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid JSON: {exc}")
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")

    credentials = Credentials(
        customer_id=_require_key(data, "CID"),
        api_key=_require_key(data, "API_KEY"),
        api_password=_require_key(data, "API_PW"),
    )

    raw_zones = data.get("ZONES", [])
    if not isinstance(raw_zones, list) or not all(isinstance(z, str) and z for z in raw_zones):
        raise ConfigError("ZONES must be a list of domain names")

    return HookConfig(
        credentials=credentials,
        zones=tuple(normalize_name(z) for z in raw_zones),
    )
