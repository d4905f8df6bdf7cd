"""Gateway settings.

Load order:
1) built-in defaults
2) src/configs/gateway.yaml (optional)
3) environment overrides

The upstream credential is NOT part of Settings. It is read per request
(see read_credential) so a missing key fails that request only.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .errors import ConfigError
from .logging_util import get_logger
from .retry import RetryPolicy

logger = get_logger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash-preview-09-2025"
DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"

@dataclass
class Settings:
    model: str = DEFAULT_MODEL
    endpoint: str = DEFAULT_ENDPOINT
    timeout: float = 30.0
    api_key_env: str = "GEMINI_API_KEY"
    retry: RetryPolicy = field(default_factory=RetryPolicy)

def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to load YAML: {path} ({e})")
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping")
    return data

def _to_int(name: str, v: Any) -> int:
    try:
        n = int(v)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer: {v!r}")
    if n < 1:
        raise ConfigError(f"{name} must be >= 1: {n}")
    return n

def _to_float(name: str, v: Any) -> float:
    try:
        x = float(v)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number: {v!r}")
    if x <= 0:
        raise ConfigError(f"{name} must be > 0: {x}")
    return x

def _to_delays(name: str, v: Any) -> Tuple[float, ...]:
    if isinstance(v, str):
        items = [p for p in (s.strip() for s in v.split(",")) if p]
    elif isinstance(v, (list, tuple)):
        items = list(v)
    else:
        raise ConfigError(f"{name} must be a list or comma-separated string")
    if not items:
        raise ConfigError(f"{name} must not be empty")

    delays = []
    for item in items:
        try:
            d = float(item)
        except (TypeError, ValueError):
            raise ConfigError(f"{name} contains a non-number: {item!r}")
        if d < 0:
            raise ConfigError(f"{name} contains a negative delay: {d}")
        delays.append(d)
    return tuple(delays)

def load_settings(project_root: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> Settings:
    # <root>/src/analysis_gateway/config.py -> parents[2] == <root>
    root = project_root or Path(__file__).resolve().parents[2]
    env = os.environ if environ is None else environ

    raw = _load_yaml(root / "src" / "configs" / "gateway.yaml")
    upstream = raw.get("upstream") or {}
    retry = raw.get("retry") or {}

    model = (env.get("GEMINI_MODEL") or upstream.get("model") or DEFAULT_MODEL).strip()
    endpoint = (env.get("GEMINI_ENDPOINT") or upstream.get("endpoint") or DEFAULT_ENDPOINT).strip().rstrip("/")
    timeout = _to_float("timeout", env.get("GEMINI_TIMEOUT") or upstream.get("timeout") or 30)
    api_key_env = (upstream.get("api_key_env") or "GEMINI_API_KEY").strip()

    max_attempts = _to_int("max_attempts", env.get("GATEWAY_MAX_ATTEMPTS") or retry.get("max_attempts") or 5)
    delays = _to_delays("delays", env.get("GATEWAY_RETRY_DELAYS") or retry.get("delays") or [1, 2, 4, 8, 16])
    statuses = frozenset(_to_int("retry_statuses", s) for s in (retry.get("retry_statuses") or [429]))

    settings = Settings(
        model=model,
        endpoint=endpoint,
        timeout=timeout,
        api_key_env=api_key_env,
        retry=RetryPolicy(max_attempts=max_attempts, delays=delays, retry_statuses=statuses),
    )
    logger.debug("Loaded settings: model=%s timeout=%s retry=%s", settings.model, settings.timeout, settings.retry)
    return settings

def sanitize_api_key(raw: str) -> str:
    """
    Guard against copy/paste mistakes in the secret value:
    - surrounding whitespace
    - plain quotes / backticks
    - smart quotes
    """
    k = (raw or "").strip()
    k = k.strip(' "\'`')
    k = k.strip("“”‘’")
    return k

def read_credential(settings: Settings, environ: Optional[Mapping[str, str]] = None) -> str:
    env = os.environ if environ is None else environ
    return sanitize_api_key(env.get(settings.api_key_env) or "")
