"""
Load config from config.yaml with optional env overrides.
Single source of truth for provider priorities, rate limits, cache TTLs, and the
synthetic-fallback switch. Credentials are read from the environment only.
"""
from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

# Defaults if no YAML or env
_DEFAULTS: Dict[str, Any] = {
    "allow_mocks": True,
    "providers": {
        "call_timeout_s": 10.0,
        "http_timeout_s": 15.0,
        "priority": {
            "price": ["coingecko", "defillama", "codex"],
            "price_history": ["coingecko", "defillama", "codex"],
            "holders": ["codex"],
            "metrics": ["codex"],
            "batch_prices": ["coingecko", "defillama"],
            "tvl": ["defillama"],
        },
        "rate_limits": {
            "codex": {"capacity": 30, "refill_per_second": 0.5},
            "defillama": {"capacity": 60, "refill_per_second": 1.0},
            "coingecko": {"capacity": 30, "refill_per_second": 0.5},
            "coingecko_pro": {"capacity": 500, "refill_per_second": 8.3},
        },
        "retry": {
            "max_attempts": 3,
            "initial_delay_s": 0.5,
            "max_delay_s": 8.0,
            "backoff_multiplier": 2.0,
            "jitter": True,
        },
    },
    "cache": {
        "max_size": 200,
        "cleanup_interval_s": 60.0,
        # seconds, by data kind then source; "default" applies to any source not listed
        "ttl_s": {
            "price": {"default": 60, "mock": 30},
            "price_history": {"default": 300, "codex": 120, "mock": 60},
            "holders": {"default": 300, "codex": 120, "mock": 60},
            "metrics": {"default": 300, "mock": 60},
            "token_info": {"default": 3600},
            "tvl": {"default": 600, "mock": 120},
        },
    },
    "metrics": {
        "holder_sample_size": 200,
        "nakamoto_threshold": 0.51,
    },
}

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _config_yaml_path() -> Path:
    """config.yaml lives at repo root (parent of package dir) unless TOKEN_ANALYTICS_CONFIG is set."""
    override = os.environ.get("TOKEN_ANALYTICS_CONFIG")
    if override:
        return Path(override)
    return Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    config_path = _config_yaml_path()
    if not config_path.exists():
        return {}
    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _env_overrides() -> dict:
    overrides: dict = {}
    allow = os.environ.get("ALLOW_MOCKS")
    if allow is not None and allow.strip():
        overrides["allow_mocks"] = allow.strip().lower() in _TRUTHY
    timeout = os.environ.get("TOKEN_ANALYTICS_CALL_TIMEOUT_S")
    if timeout:
        overrides.setdefault("providers", {})["call_timeout_s"] = float(timeout)
    return overrides


def get_config() -> dict:
    """Return merged config: defaults <- config.yaml <- env."""
    merged = _deep_merge(copy.deepcopy(_DEFAULTS), _load_yaml())
    merged = _deep_merge(merged, _env_overrides())
    return merged


# Convenience accessors
def allow_mocks(cfg: Optional[dict] = None) -> bool:
    return bool((cfg or get_config())["allow_mocks"])


def provider_priority(kind: str, cfg: Optional[dict] = None) -> List[str]:
    priorities = (cfg or get_config())["providers"]["priority"]
    return list(priorities.get(kind, []))


def call_timeout_s(cfg: Optional[dict] = None) -> float:
    return float((cfg or get_config())["providers"]["call_timeout_s"])


def http_timeout_s(cfg: Optional[dict] = None) -> float:
    return float((cfg or get_config())["providers"]["http_timeout_s"])


def rate_limit(name: str, cfg: Optional[dict] = None) -> Dict[str, float]:
    limits = (cfg or get_config())["providers"]["rate_limits"]
    entry = limits.get(name)
    if entry is None:
        raise KeyError(f"No rate limit configured for '{name}'. Available: {list(limits)}")
    return {"capacity": float(entry["capacity"]), "refill_per_second": float(entry["refill_per_second"])}


def retry_settings(cfg: Optional[dict] = None) -> Dict[str, Any]:
    return dict((cfg or get_config())["providers"]["retry"])


def cache_max_size(cfg: Optional[dict] = None) -> int:
    return int((cfg or get_config())["cache"]["max_size"])


def cache_cleanup_interval_s(cfg: Optional[dict] = None) -> float:
    return float((cfg or get_config())["cache"]["cleanup_interval_s"])


def cache_ttls(cfg: Optional[dict] = None) -> Dict[str, Dict[str, float]]:
    raw = (cfg or get_config())["cache"]["ttl_s"]
    return {kind: {src: float(v) for src, v in by_source.items()} for kind, by_source in raw.items()}


def holder_sample_size(cfg: Optional[dict] = None) -> int:
    return int((cfg or get_config())["metrics"]["holder_sample_size"])


def nakamoto_threshold(cfg: Optional[dict] = None) -> float:
    return float((cfg or get_config())["metrics"]["nakamoto_threshold"])


def codex_api_key() -> Optional[str]:
    return os.environ.get("CODEX_API_KEY") or None


def coingecko_api_key() -> Optional[str]:
    return os.environ.get("COINGECKO_API_KEY") or None
