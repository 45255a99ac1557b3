"""
Shared fixtures: fake HTTP backend, UDP receiver and wired-up clients.
"""

import os
import socket
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, os.path.dirname(__file__))

from fake_backend import FakeBackend
from fitform_sync.config import SyncConfig, TelemetryConfig
from fitform_sync.sync import SyncCoordinator
from fitform_sync.transport import ControlClient


class UDPReceiver:
    """Bound UDP socket standing in for the telemetry server."""

    def __init__(self):
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(("127.0.0.1", 0))
        self.sock.settimeout(2.0)
        self.last_peer = None

    @property
    def port(self) -> int:
        return self.sock.getsockname()[1]

    def recv(self, timeout: float = 2.0) -> bytes:
        self.sock.settimeout(timeout)
        data, self.last_peer = self.sock.recvfrom(65535)
        return data

    def assert_silent(self, timeout: float = 0.3) -> None:
        self.sock.settimeout(timeout)
        with pytest.raises(socket.timeout):
            self.sock.recvfrom(65535)

    def close(self) -> None:
        self.sock.close()


@pytest.fixture
def backend():
    """Running fake control API."""
    server = FakeBackend()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def udp_receiver():
    receiver = UDPReceiver()
    yield receiver
    receiver.close()


@pytest.fixture
def control(backend):
    client = ControlClient(backend.url, timeout=2.0)
    yield client
    client.close()


@pytest.fixture
def coordinator(backend, udp_receiver):
    """Coordinator wired to the fake backend and the UDP receiver."""
    sync = SyncCoordinator(
        ControlClient(backend.url, timeout=2.0),
        telemetry_config=TelemetryConfig(host="127.0.0.1", port=udp_receiver.port,
                                         receive=False, ready_timeout=2.0),
        sync_config=SyncConfig(poll_timeout=2.0),
    )
    yield sync
    sync.close()
