"""
Configuration Module
====================
"""

from .settings import (
    TelemetryConfig,
    ControlConfig,
    SyncConfig,
    get_telemetry_config,
    get_control_config,
    get_sync_config,
)

__all__ = [
    "TelemetryConfig",
    "ControlConfig",
    "SyncConfig",
    "get_telemetry_config",
    "get_control_config",
    "get_sync_config",
]
