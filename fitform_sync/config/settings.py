"""
Client Configuration
====================

Backend endpoints and timing settings for the sync client.

Every value can be overridden through the environment or a ``.env`` file.
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass
class TelemetryConfig:
    """UDP telemetry channel settings."""
    host: str = "127.0.0.1"
    port: int = 8001
    receive: bool = True
    ready_timeout: float = 5.0


@dataclass
class ControlConfig:
    """HTTP control API settings."""
    base_url: str = "http://127.0.0.1:8000"
    timeout: float = 10.0


@dataclass
class SyncConfig:
    """Coordinator settings."""
    poll_timeout: float = 5.0
    log_level: str = "INFO"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


def get_telemetry_config() -> TelemetryConfig:
    """Get telemetry channel configuration from environment."""
    return TelemetryConfig(
        host=os.getenv("FITFORM_TELEMETRY_HOST", "127.0.0.1"),
        port=int(os.getenv("FITFORM_TELEMETRY_PORT", "8001")),
        receive=_env_bool("FITFORM_TELEMETRY_RECEIVE", "true"),
        ready_timeout=float(os.getenv("FITFORM_READY_TIMEOUT", "5.0")),
    )


def get_control_config() -> ControlConfig:
    """Get control client configuration from environment."""
    return ControlConfig(
        base_url=os.getenv("FITFORM_CONTROL_URL", "http://127.0.0.1:8000").rstrip("/"),
        timeout=float(os.getenv("FITFORM_CONTROL_TIMEOUT", "10.0")),
    )


def get_sync_config() -> SyncConfig:
    """Get coordinator configuration from environment."""
    return SyncConfig(
        poll_timeout=float(os.getenv("FITFORM_POLL_TIMEOUT", "5.0")),
        log_level=os.getenv("FITFORM_LOG_LEVEL", "INFO").upper(),
    )
