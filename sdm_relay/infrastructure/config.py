"""
Configuration Module

Architectural Intent:
- Centralized configuration loading from a JSON file
- Provides typed access to all relay settings
- Falls back to sensible defaults when config file is absent
- Environment variables override file-based config

Design Decisions:
- Config is a frozen dataclass for immutability after load
- Nested config sections map to sub-dataclasses
- Backend credentials can come from SDMRELAY_SDM_USERNAME / _PASSWORD so
  they need not live in the file
"""

from __future__ import annotations
import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import json
import logging
import os

logger = logging.getLogger(__name__)

LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class ListenerConfig:
    """HTTP listener configuration."""
    host: str = "0.0.0.0"
    port: int = 8080


@dataclass(frozen=True)
class SDMConfig:
    """CA Service Desk Manager backend configuration."""
    endpoint: str = ""
    username: str = ""
    password: str = field(default="", repr=False)
    timeout_seconds: float = 30.0
    operator_userid: str = "testedeconformidade"
    default_category: str = "400373"
    group: str = "5FA1B7BE4CFA2E4C9B19E115AE49A642"
    type: str = "crt:182"
    urgency: str = "2"
    impact: str = "4"
    root_cause: str = ""
    title_prefix: str = "Dynatrace"


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy for Service Desk call sequences."""
    max_attempts: int = 50
    backoff_seconds: float = 0.0
    backoff_max_seconds: float = 30.0


@dataclass(frozen=True)
class StoreConfig:
    """Association store configuration."""
    path: str = "problems.json"


@dataclass(frozen=True)
class TelemetryConfig:
    """OpenTelemetry configuration."""
    endpoint: str = ""
    insecure: bool = False


@dataclass(frozen=True)
class RelayConfig:
    """Root configuration for the relay."""
    listener: ListenerConfig = field(default_factory=ListenerConfig)
    sdm: SDMConfig = field(default_factory=SDMConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
    log_level: str = "INFO"
    log_file: str = ""
    log_json: bool = False


_SECTIONS = {
    "listener": ListenerConfig,
    "sdm": SDMConfig,
    "retry": RetryConfig,
    "store": StoreConfig,
    "telemetry": TelemetryConfig,
}


def _env_override(data: dict, prefix: str = "SDMRELAY") -> dict:
    """Override config values with environment variables.

    Environment variables follow the pattern SDMRELAY_SECTION_KEY.
    For example: SDMRELAY_LISTENER_PORT=9090, SDMRELAY_SDM_TIMEOUT_SECONDS=10.
    Keys that are not a known section name are top-level (SDMRELAY_LOG_LEVEL).
    """
    for key, value in os.environ.items():
        if not key.startswith(f"{prefix}_"):
            continue
        name = key[len(prefix) + 1:].lower()
        parts = name.split("_", 1)
        if len(parts) == 2 and parts[0] in _SECTIONS:
            section, field_name = parts
            if not isinstance(data.get(section), dict):
                data[section] = {}
            data[section][field_name] = value
        else:
            data[name] = value
    return data


def _parse_config_file(path: Path) -> dict:
    """Parse a JSON config file. Returns empty dict on failure."""
    try:
        with open(path) as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.debug("Config file not found: %s", path)
        return {}
    except json.JSONDecodeError as e:
        logger.warning("Invalid config file %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Invalid config file %s: top level must be an object", path)
        return {}
    return data


def _coerce(value, type_name: str):
    """Convert string values from the environment to the field's type."""
    if not isinstance(value, str):
        if type_name == "float" and isinstance(value, int):
            return float(value)
        return value
    if type_name == "int":
        return int(value)
    if type_name == "float":
        return float(value)
    if type_name == "bool":
        return value.lower() in ("true", "1", "yes")
    return value


def _build_sub_config(cls, data: dict):
    """Build a sub-config dataclass from a dict, ignoring unknown keys."""
    if not isinstance(data, dict):
        return cls()
    fields = {f.name: f for f in dataclasses.fields(cls)}
    filtered = {
        k: _coerce(v, str(fields[k].type)) for k, v in data.items() if k in fields
    }
    return cls(**filtered)


def load_config(
    path: Optional[str] = None,
    env_prefix: str = "SDMRELAY",
) -> RelayConfig:
    """Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (SDMRELAY_SECTION_KEY)
    2. Config file values
    3. Defaults

    Args:
        path: Path to config file (JSON). Defaults to sdm_relay.json in CWD.
        env_prefix: Environment variable prefix. Defaults to SDMRELAY.
    """
    config_path = Path(path) if path else Path("sdm_relay.json")
    data = _parse_config_file(config_path)
    data = _env_override(data, env_prefix)

    sections = {
        name: _build_sub_config(cls, data.get(name, {}))
        for name, cls in _SECTIONS.items()
    }
    return RelayConfig(
        **sections,
        log_level=str(data.get("log_level", "INFO")).upper(),
        log_file=str(data.get("log_file", "")),
        log_json=_coerce(data.get("log_json", False), "bool"),
    )
