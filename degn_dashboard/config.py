"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://degn.vercel.app/api/v1"

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ApiConfig:
    base_url: str = DEFAULT_BASE_URL
    timeout: int = 30
    auth_token: str = ""


@dataclass(frozen=True)
class RetryConfig:
    max_retries: int = 2
    base_delay_ms: int = 300


@dataclass(frozen=True)
class SessionConfig:
    auth_cooldown_ms: int = 1000


@dataclass(frozen=True)
class AppConfig:
    api: ApiConfig = field(default_factory=ApiConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    session: SessionConfig = field(default_factory=SessionConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_api(raw: dict[str, Any]) -> ApiConfig:
    return ApiConfig(
        base_url=str(raw.get("base_url") or DEFAULT_BASE_URL).rstrip("/"),
        timeout=int(raw.get("timeout", 30)),
        auth_token=str(raw.get("auth_token") or ""),
    )


def _build_retry(raw: dict[str, Any]) -> RetryConfig:
    return RetryConfig(
        max_retries=int(raw.get("max_retries", 2)),
        base_delay_ms=int(raw.get("base_delay_ms", 300)),
    )


def _build_session(raw: dict[str, Any]) -> SessionConfig:
    return SessionConfig(auth_cooldown_ms=int(raw.get("auth_cooldown_ms", 1000)))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        api=_build_api(raw.get("api") or {}),
        retry=_build_retry(raw.get("retry") or {}),
        session=_build_session(raw.get("session") or {}),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.api.base_url.startswith(("http://", "https://")):
        raise ValueError(f"api.base_url must be an http(s) URL: '{cfg.api.base_url}'")
    if cfg.api.timeout <= 0:
        raise ValueError("api.timeout must be positive")
    if cfg.retry.max_retries < 0:
        raise ValueError("retry.max_retries must not be negative")
    if cfg.retry.base_delay_ms <= 0:
        raise ValueError("retry.base_delay_ms must be positive")
    if cfg.session.auth_cooldown_ms < 0:
        raise ValueError("session.auth_cooldown_ms must not be negative")
