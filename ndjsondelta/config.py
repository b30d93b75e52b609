"""Configuration loading from environment variables."""

from __future__ import annotations

import codecs
import os
from dataclasses import dataclass, field


@dataclass
class RemoteConfig:
    """Remote object store configuration."""

    base_url: str = ""
    token: str = ""
    timeout_seconds: float = 30.0


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "warning"


@dataclass
class NdjsonDeltaConfig:
    """Top-level configuration."""

    encoding: str = "utf-8-sig"
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    log: LogConfig = field(default_factory=LogConfig)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"NDJSONDELTA_{key}", default)


def _env_float(key: str, default: float, min_val: float | None = None, max_val: float | None = None) -> float:
    val = float(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {sorted(valid)}")
    return value.lower()


def _validate_encoding(value: str) -> str:
    try:
        codecs.lookup(value)
    except LookupError as exc:
        raise ValueError(f"Invalid encoding: {value}") from exc
    return value


def load_config() -> NdjsonDeltaConfig:
    """Load configuration from NDJSONDELTA_* environment variables."""
    return NdjsonDeltaConfig(
        encoding=_validate_encoding(_env("ENCODING", "utf-8-sig")),
        remote=RemoteConfig(
            base_url=_env("REMOTE_BASE_URL", "").rstrip("/"),
            token=_env("REMOTE_TOKEN", ""),
            timeout_seconds=_env_float("REMOTE_TIMEOUT", 30.0, min_val=1.0, max_val=300.0),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "warning")),
        ),
    )
