"""
Configuration module for the metrics probes.

All configuration values are loaded from environment variables with sensible defaults.
See .env.example for all available configuration options.
"""
import os
from dataclasses import dataclass
from typing import Optional


def _get_float(key: str, default: float) -> float:
    """Get float from environment variable."""
    return float(os.getenv(key, default))


def _get_int(key: str, default: int) -> int:
    """Get int from environment variable."""
    return int(os.getenv(key, default))


def _get_bool(key: str, default: bool) -> bool:
    """Get bool from environment variable ("1", "true", "yes", "on" are truthy)."""
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class RedisConfig:
    """Connection settings of the Redis instance backing the metrics storage."""

    host: str = os.getenv("REDIS_HOST", "localhost")
    port: int = _get_int("REDIS_PORT", 6379)
    db: int = _get_int("REDIS_DB", 0)
    password: Optional[str] = os.getenv("REDIS_PASSWORD") or None

    # Timeouts in seconds; kept short so an unreachable peer fails fast at boot
    connect_timeout: float = _get_float("REDIS_CONNECT_TIMEOUT", 0.5)
    socket_timeout: float = _get_float("REDIS_SOCKET_TIMEOUT", 0.5)

    # Key prefix of the hashes written by the Redis metrics storage
    storage_prefix: str = os.getenv("METRICS_STORAGE_PREFIX", "PROMETHEUS_")


@dataclass
class MetricsConfig:
    """Instrumentation settings."""

    # Wrap the collector with the debug-logging decorator
    debug_logging: bool = _get_bool("METRICS_DEBUG", False)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Metric name prefix of the outbound HTTP probe ("api_request_pending", ...)
    outbound_prefix: str = os.getenv("METRICS_OUTBOUND_PREFIX", "api")

    # Inbound HTTP block-list
    metrics_route: str = os.getenv("METRICS_ROUTE", "metrics")
    internal_route_prefix: str = os.getenv("METRICS_INTERNAL_ROUTE_PREFIX", "_")


# Global config instances (lazy loaded)
_redis_config = None
_metrics_config = None


def get_redis_config() -> RedisConfig:
    """Get Redis configuration."""
    global _redis_config
    if _redis_config is None:
        _redis_config = RedisConfig()
    return _redis_config


def get_metrics_config() -> MetricsConfig:
    """Get instrumentation configuration."""
    global _metrics_config
    if _metrics_config is None:
        _metrics_config = MetricsConfig()
    return _metrics_config


def reload_config():
    """Force reload of all configuration from environment variables."""
    global _redis_config, _metrics_config
    _redis_config = RedisConfig(
        host=os.getenv("REDIS_HOST", "localhost"),
        port=_get_int("REDIS_PORT", 6379),
        db=_get_int("REDIS_DB", 0),
        password=os.getenv("REDIS_PASSWORD") or None,
        connect_timeout=_get_float("REDIS_CONNECT_TIMEOUT", 0.5),
        socket_timeout=_get_float("REDIS_SOCKET_TIMEOUT", 0.5),
        storage_prefix=os.getenv("METRICS_STORAGE_PREFIX", "PROMETHEUS_"),
    )
    _metrics_config = MetricsConfig(
        debug_logging=_get_bool("METRICS_DEBUG", False),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        outbound_prefix=os.getenv("METRICS_OUTBOUND_PREFIX", "api"),
        metrics_route=os.getenv("METRICS_ROUTE", "metrics"),
        internal_route_prefix=os.getenv("METRICS_INTERNAL_ROUTE_PREFIX", "_"),
    )
