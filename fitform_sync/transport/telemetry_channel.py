"""
Telemetry Channel Module
========================

Fire-and-forget UDP channel streaming joint frames to the backend.

The channel connects in the background. Once it is ready it announces the
session with a handshake datagram (``"<session_id> 1"``); every later datagram
is one encoded joint frame. Frames sent before the channel is ready are
dropped, and send failures are reported to the error sink without closing
the channel.

Usage:
    channel = TelemetryChannel("127.0.0.1", 8001, session_id=42)
    channel.initialize()
    if channel.wait_until_ready(timeout=5.0):
        channel.send_frame({"hips_joint": [0.0, 1.0, -1.5]})
    channel.close()
"""

import logging
import socket
import threading
import time
from enum import Enum
from typing import Callable, Optional, Union

from ..errors import EncodeError, ProtocolError, TransportError
from ..utils.joint_frame import JointFrame, encode_frame, encode_handshake

logger = logging.getLogger(__name__)

MAX_DATAGRAM_SIZE = 65535


class ChannelState(str, Enum):
    UNINITIALIZED = "uninitialized"
    PREPARING = "preparing"
    READY = "ready"
    CANCELLED = "cancelled"
    FAILED = "failed"


def _log_transport_error(error: TransportError) -> None:
    logger.warning("Telemetry transport error: %s", error)


class TelemetryChannel:
    """
    Thread-safe UDP telemetry channel for one tracking session.

    Attributes:
        host (str): Backend telemetry host
        port (int): Backend telemetry port
        session_id (int): Session announced in the handshake
        sent_count (int): Datagrams handed to the socket, handshake included
    """

    def __init__(
        self,
        host: str,
        port: int,
        session_id: int,
        receive: bool = True,
        error_sink: Optional[Callable[[TransportError], None]] = None,
        on_message: Optional[Callable[[str], None]] = None,
        recv_timeout: float = 0.5,
    ):
        self.host = host
        self.port = port
        self.session_id = session_id
        self.receive = receive
        self.error_sink = error_sink or _log_transport_error
        self.on_message = on_message
        self.recv_timeout = recv_timeout
        self.sent_count = 0

        self.lock = threading.Lock()
        self._state = ChannelState.UNINITIALIZED
        self._ready = threading.Event()
        self._sock: Optional[socket.socket] = None
        self._connect_thread: Optional[threading.Thread] = None
        self._receive_thread: Optional[threading.Thread] = None

    @property
    def state(self) -> ChannelState:
        with self.lock:
            return self._state

    def is_ready(self) -> bool:
        return self.state == ChannelState.READY

    def initialize(self) -> None:
        """
        Start connecting in the background.

        Raises:
            ProtocolError: If the channel was already initialized
        """
        with self.lock:
            if self._state != ChannelState.UNINITIALIZED:
                raise ProtocolError(f"Cannot initialize telemetry channel in state {self._state.value}")
            self._state = ChannelState.PREPARING

        logger.debug("Telemetry channel preparing for %s:%s", self.host, self.port)
        self._connect_thread = threading.Thread(
            target=self._open, name="telemetry-connect", daemon=True
        )
        self._connect_thread.start()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the channel leaves the preparing state.

        Args:
            timeout: Maximum seconds to wait

        Returns:
            True if the channel is ready, False on timeout or failure
        """
        self._ready.wait(timeout)
        return self.is_ready()

    def _open(self) -> None:
        """Connect the socket, send the handshake and become ready."""
        try:
            family, socktype, proto, _, address = socket.getaddrinfo(
                self.host, self.port, type=socket.SOCK_DGRAM
            )[0]
            sock = socket.socket(family, socktype, proto)
            sock.settimeout(self.recv_timeout)
            sock.connect(address)
        except OSError as e:
            with self.lock:
                if self._state == ChannelState.PREPARING:
                    self._state = ChannelState.FAILED
            self._ready.set()
            self.error_sink(TransportError(f"Could not open telemetry channel to {self.host}:{self.port}: {e}"))
            return

        with self.lock:
            if self._state != ChannelState.PREPARING:
                # Closed while connecting
                sock.close()
                return
            self._sock = sock
            # Handshake goes out before any frame can observe READY
            handshake_error = self._send_locked(encode_handshake(self.session_id))
            self._state = ChannelState.READY

        if self.receive:
            self._receive_thread = threading.Thread(
                target=self._receive_loop, name="telemetry-receive", daemon=True
            )
            self._receive_thread.start()

        self._ready.set()
        logger.info("Telemetry channel ready (session %s)", self.session_id)
        if handshake_error:
            self.error_sink(handshake_error)

    def _send_locked(self, payload: bytes) -> Optional[TransportError]:
        """Send on the open socket; caller holds the lock."""
        try:
            self._sock.send(payload)
        except OSError as e:
            return TransportError(f"Telemetry send failed: {e}")
        self.sent_count += 1
        return None

    def send(self, payload: Union[bytes, str]) -> None:
        """
        Send one datagram without waiting for acknowledgment.

        Dropped silently unless the channel is ready. Never raises for
        transport failures; those go to the error sink.
        """
        if isinstance(payload, str):
            payload = payload.encode("utf-8")

        with self.lock:
            if self._state != ChannelState.READY:
                logger.debug(
                    "%s",
                    ProtocolError(f"Dropped telemetry datagram in state {self._state.value}"),
                )
                return
            error = self._send_locked(payload)

        if error:
            self.error_sink(error)

    def send_frame(self, frame: JointFrame) -> None:
        """Encode and send one joint frame."""
        if not self.is_ready():
            logger.debug("Dropped joint frame: telemetry channel not ready")
            return
        try:
            payload = encode_frame(frame)
        except EncodeError as e:
            logger.warning("Dropped joint frame: %s", e)
            return
        self.send(payload)

    def _receive_loop(self) -> None:
        """Read replies until the channel is closed."""
        while True:
            with self.lock:
                if self._state != ChannelState.READY:
                    break
                sock = self._sock
            try:
                data = sock.recv(MAX_DATAGRAM_SIZE)
            except socket.timeout:
                continue
            except OSError as e:
                if not self.is_ready():
                    break
                # e.g. ICMP port unreachable surfaced on a connected socket
                self.error_sink(TransportError(f"Telemetry receive failed: {e}"))
                time.sleep(self.recv_timeout)
                continue

            message = data.decode("utf-8", errors="replace")
            logger.debug("Telemetry reply: %s", message)
            if self.on_message:
                try:
                    self.on_message(message)
                except Exception:
                    logger.exception("Telemetry message handler failed")

    def close(self) -> None:
        """Cancel the channel and release the socket. Safe to call twice."""
        with self.lock:
            if self._state in (ChannelState.CANCELLED, ChannelState.FAILED):
                return
            self._state = ChannelState.CANCELLED
            sock = self._sock
            self._sock = None
        self._ready.set()

        if sock:
            sock.close()
        if self._receive_thread and self._receive_thread is not threading.current_thread():
            self._receive_thread.join(timeout=2.0)
        logger.debug("Telemetry channel closed")

    def __enter__(self) -> "TelemetryChannel":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
