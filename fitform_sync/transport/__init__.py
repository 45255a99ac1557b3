"""
Transport Module
================

UDP telemetry channel and HTTP control client.
"""

from .control_client import ControlClient
from .telemetry_channel import ChannelState, TelemetryChannel

__all__ = ["ControlClient", "ChannelState", "TelemetryChannel"]
