"""
Tests for environment configuration.
"""
import pytest

from domain.config import get_metrics_config, get_redis_config, reload_config


@pytest.fixture
def restore_config(monkeypatch):
    """Reload the configuration from the original environment after the test."""
    yield
    monkeypatch.undo()
    reload_config()


class TestReloadConfig:
    """Tests for reading configuration from the environment."""

    def test_redis_settings(self, monkeypatch, restore_config):
        monkeypatch.setenv("REDIS_HOST", "cache.internal")
        monkeypatch.setenv("REDIS_PORT", "6380")
        monkeypatch.setenv("REDIS_PASSWORD", "")
        monkeypatch.setenv("METRICS_STORAGE_PREFIX", "APP_")

        reload_config()

        config = get_redis_config()
        assert config.host == "cache.internal"
        assert config.port == 6380
        assert config.password is None
        assert config.storage_prefix == "APP_"

    @pytest.mark.parametrize("raw, expected", [("true", True), ("1", True), ("off", False), ("no", False)])
    def test_debug_flag(self, monkeypatch, restore_config, raw, expected):
        monkeypatch.setenv("METRICS_DEBUG", raw)

        reload_config()

        assert get_metrics_config().debug_logging is expected

    def test_metrics_settings(self, monkeypatch, restore_config):
        monkeypatch.setenv("METRICS_OUTBOUND_PREFIX", "bank")
        monkeypatch.setenv("METRICS_ROUTE", "prometheus")

        reload_config()

        config = get_metrics_config()
        assert config.outbound_prefix == "bank"
        assert config.metrics_route == "prometheus"
        assert config.internal_route_prefix == "_"
