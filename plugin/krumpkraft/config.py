"""
Plugin configuration: defaults, the immutable Config snapshot and its holder.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

_log = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8081"
DEFAULT_TIMEOUT_MS = 60000
DEFAULT_SYNC_INTERVAL_MS = 5000
MIN_SYNC_INTERVAL_MS = 2000
DEFAULT_SPAWN_WORLD = "world"
DEFAULT_Y = 64

DEFAULTS: Dict[str, Any] = {
    "api.url": DEFAULT_API_URL,
    "api.timeout-ms": DEFAULT_TIMEOUT_MS,
    "api.sync-interval-ms": DEFAULT_SYNC_INTERVAL_MS,
    "markers.enabled": True,
    "markers.spawn-world": DEFAULT_SPAWN_WORLD,
    "markers.default-y": DEFAULT_Y,
    "markers.show-role": True,
}

# KRUMPKRAFT_* environment variable -> dotted config key
ENV_KEYS: Dict[str, str] = {
    "KRUMPKRAFT_API_URL": "api.url",
    "KRUMPKRAFT_API_TIMEOUT_MS": "api.timeout-ms",
    "KRUMPKRAFT_API_SYNC_INTERVAL_MS": "api.sync-interval-ms",
    "KRUMPKRAFT_MARKERS_ENABLED": "markers.enabled",
    "KRUMPKRAFT_MARKERS_SPAWN_WORLD": "markers.spawn-world",
    "KRUMPKRAFT_MARKERS_DEFAULT_Y": "markers.default-y",
    "KRUMPKRAFT_MARKERS_SHOW_ROLE": "markers.show-role",
}

_MISSING = object()


def _lookup(values: Mapping[str, Any], key: str) -> Any:
    """Find a dotted key either as a flat entry or by walking nested mappings."""
    if key in values:
        return values[key]
    node: Any = values
    for part in key.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return _MISSING
        node = node[part]
    return node


def _as_str(key: str, raw: Any) -> str:
    if raw is _MISSING or raw is None:
        return DEFAULTS[key]
    return str(raw).strip()


def _as_int(key: str, raw: Any) -> int:
    if raw is _MISSING or raw is None:
        return DEFAULTS[key]
    if isinstance(raw, bool):
        _log.warning("Config %s expects a number, got %r; using default", key, raw)
        return DEFAULTS[key]
    try:
        return int(float(raw))
    except (TypeError, ValueError):
        _log.warning("Config %s expects a number, got %r; using default", key, raw)
        return DEFAULTS[key]


def _as_bool(key: str, raw: Any) -> bool:
    if raw is _MISSING or raw is None:
        return DEFAULTS[key]
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Config:
    api_url: str = DEFAULT_API_URL
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    sync_interval_ms: int = DEFAULT_SYNC_INTERVAL_MS
    markers_enabled: bool = True
    spawn_world: str = DEFAULT_SPAWN_WORLD
    default_y: int = DEFAULT_Y
    show_role: bool = True

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    @classmethod
    def from_mapping(cls, values: Optional[Mapping[str, Any]]) -> "Config":
        """Build a snapshot from a host config store; missing keys take DEFAULTS."""
        values = values or {}
        api_url = _as_str("api.url", _lookup(values, "api.url")).rstrip("/")
        return cls(
            api_url=api_url,
            timeout_ms=_as_int("api.timeout-ms", _lookup(values, "api.timeout-ms")),
            sync_interval_ms=max(
                MIN_SYNC_INTERVAL_MS,
                _as_int("api.sync-interval-ms", _lookup(values, "api.sync-interval-ms")),
            ),
            markers_enabled=_as_bool("markers.enabled", _lookup(values, "markers.enabled")),
            spawn_world=_as_str("markers.spawn-world", _lookup(values, "markers.spawn-world")),
            default_y=_as_int("markers.default-y", _lookup(values, "markers.default-y")),
            show_role=_as_bool("markers.show-role", _lookup(values, "markers.show-role")),
        )


ConfigSource = Callable[[], Mapping[str, Any]]


def env_source() -> Dict[str, Any]:
    """Read KRUMPKRAFT_* environment variables into dotted config keys."""
    out: Dict[str, Any] = {}
    for env_name, key in ENV_KEYS.items():
        raw = os.getenv(env_name)
        if raw is not None and raw.strip() != "":
            out[key] = raw.strip()
    return out


class ConfigHolder:
    """Holds the current Config snapshot; reload() swaps in a whole new one."""

    def __init__(self, source: Optional[ConfigSource] = None):
        self._source = source or env_source
        self._config = Config()

    @property
    def config(self) -> Config:
        return self._config

    def reload(self) -> Config:
        cfg = Config.from_mapping(self._source())
        self._config = cfg
        return cfg


def validate_config(cfg: Config) -> None:
    """Log warnings for suspicious configuration. Called on enable and reload."""
    if not cfg.api_url.startswith(("http://", "https://")):
        _log.warning(
            "api.url '%s' is not an http(s) URL; agent service calls will fail.",
            cfg.api_url,
        )
    if cfg.timeout_ms <= 0:
        _log.warning(
            "api.timeout-ms is %d; requests need a positive timeout.", cfg.timeout_ms
        )
    if not cfg.markers_enabled:
        _log.info("markers.enabled is false; agent markers will not be shown.")
