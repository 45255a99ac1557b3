"""
Unit tests for environment-driven configuration.
"""

from fitform_sync.config import get_control_config, get_sync_config, get_telemetry_config

ENV_VARS = [
    "FITFORM_TELEMETRY_HOST",
    "FITFORM_TELEMETRY_PORT",
    "FITFORM_TELEMETRY_RECEIVE",
    "FITFORM_READY_TIMEOUT",
    "FITFORM_CONTROL_URL",
    "FITFORM_CONTROL_TIMEOUT",
    "FITFORM_POLL_TIMEOUT",
    "FITFORM_LOG_LEVEL",
]


class TestSettings:
    """Test suite for configuration loading."""

    def test_defaults(self, monkeypatch):
        for name in ENV_VARS:
            monkeypatch.delenv(name, raising=False)

        telemetry = get_telemetry_config()
        assert (telemetry.host, telemetry.port, telemetry.receive) == ("127.0.0.1", 8001, True)
        assert get_control_config().base_url == "http://127.0.0.1:8000"
        assert get_sync_config().poll_timeout == 5.0

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("FITFORM_TELEMETRY_HOST", "192.168.2.100")
        monkeypatch.setenv("FITFORM_TELEMETRY_PORT", "9001")
        monkeypatch.setenv("FITFORM_TELEMETRY_RECEIVE", "false")
        monkeypatch.setenv("FITFORM_CONTROL_URL", "http://192.168.2.100:8000/")
        monkeypatch.setenv("FITFORM_POLL_TIMEOUT", "1.5")
        monkeypatch.setenv("FITFORM_LOG_LEVEL", "debug")

        telemetry = get_telemetry_config()
        assert telemetry.host == "192.168.2.100"
        assert telemetry.port == 9001
        assert telemetry.receive is False
        assert get_control_config().base_url == "http://192.168.2.100:8000"
        sync = get_sync_config()
        assert sync.poll_timeout == 1.5
        assert sync.log_level == "DEBUG"
