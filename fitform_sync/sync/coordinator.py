"""
Sync Coordinator Module
=======================

Ties the control client, the telemetry channel and the session state together.

The sensor loop calls ``on_sensor_update`` about 60 times a second. Each call
streams the joint frame over telemetry and, if no poll is in flight, issues
one poll on a single worker thread. A poll that has not completed within
``poll_timeout`` is written off so later ticks can poll again; its late
result is discarded.

Usage:
    coordinator = SyncCoordinator.from_config()
    result = coordinator.login(Credentials("A", "a@x.com", "p"))
    if result.ok:
        coordinator.start_tracking(wait=True)
        coordinator.on_sensor_update(frame)   # every sensor tick
    coordinator.close()
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from typing import Callable, List, Optional

from ..config import (
    SyncConfig,
    TelemetryConfig,
    get_control_config,
    get_sync_config,
    get_telemetry_config,
)
from ..errors import ProtocolError, SyncError
from ..models import NO_SESSION, NOTHING, Credentials, OperationResult, Session, WorkoutSpec
from ..transport import ChannelState, ControlClient, TelemetryChannel
from ..utils.joint_frame import JointFrame
from .session_state import SessionState

logger = logging.getLogger(__name__)

SessionListener = Callable[[Session], None]


class SyncCoordinator:
    """
    Owns the session state and sequences all traffic to the backend.

    Attributes:
        control (ControlClient): Request/response client
        state (SessionState): The shared session record
        channel (TelemetryChannel): Current telemetry channel, None when not tracking
        polls_issued (int): Poll requests submitted so far
    """

    def __init__(
        self,
        control: ControlClient,
        telemetry_config: Optional[TelemetryConfig] = None,
        sync_config: Optional[SyncConfig] = None,
        channel_factory: Callable[..., TelemetryChannel] = TelemetryChannel,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.control = control
        self.telemetry_config = telemetry_config or TelemetryConfig()
        self.sync_config = sync_config or SyncConfig()
        self.state = SessionState()
        self.channel: Optional[TelemetryChannel] = None
        self.polls_issued = 0

        self._channel_factory = channel_factory
        self._clock = clock
        self._channel_lock = threading.Lock()
        self._listeners: List[SessionListener] = []

        self._poll_lock = threading.Lock()
        self._poll_outstanding = False
        self._poll_started = 0.0
        self._poll_generation = 0
        self._poll_future: Optional[Future] = None
        self._closed = False
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sync_poll_")

    @classmethod
    def from_config(cls) -> "SyncCoordinator":
        """Build a coordinator from environment configuration."""
        control_config = get_control_config()
        return cls(
            ControlClient(control_config.base_url, control_config.timeout),
            telemetry_config=get_telemetry_config(),
            sync_config=get_sync_config(),
        )

    # ----- session -----

    def snapshot(self) -> Session:
        return self.state.snapshot()

    @property
    def repetition_count(self) -> int:
        return self.state.repetition_count

    def add_listener(self, listener: SessionListener) -> None:
        """Register a callback run with the new snapshot when the count changes."""
        self._listeners.append(listener)

    def _notify(self, session: Session) -> None:
        for listener in list(self._listeners):
            try:
                listener(session)
            except Exception:
                logger.exception("Session listener failed")

    def _authenticate(self, call: Callable[[Credentials], int], credentials: Credentials,
                      action: str) -> OperationResult:
        try:
            session_id = call(credentials)
        except SyncError as e:
            logger.warning("%s failed: %s", action, e)
            return OperationResult.failure(e)

        self.stop_tracking()
        self._abandon_poll()
        session = self.state.set_session_id(session_id)
        logger.info("%s succeeded, session %s", action, session_id)
        return OperationResult.success(session)

    def login(self, credentials: Credentials) -> OperationResult:
        return self._authenticate(self.control.login, credentials, "Login")

    def register(self, credentials: Credentials) -> OperationResult:
        return self._authenticate(self.control.register, credentials, "Registration")

    def logout(self) -> None:
        """Stop tracking and drop the session."""
        self.stop_tracking()
        self._abandon_poll()
        self.state.reset()
        logger.info("Logged out")

    # ----- workouts -----

    def create_workout(self, spec: WorkoutSpec) -> OperationResult:
        session_id = self.state.session_id
        if not self.state.has_session():
            return OperationResult.failure(ProtocolError("Cannot create a workout without a session"))
        try:
            return OperationResult.success(self.control.create_workout(session_id, spec))
        except SyncError as e:
            logger.warning("Create workout failed: %s", e)
            return OperationResult.failure(e)

    def list_workouts(self) -> OperationResult:
        try:
            return OperationResult.success(self.control.list_workouts())
        except SyncError as e:
            logger.warning("Listing workouts failed: %s", e)
            return OperationResult.failure(e)

    def select_workout(self, workout_id: int) -> Session:
        """Make a workout active; its repetition count starts at zero."""
        session = self.state.select_workout(workout_id)
        logger.info("Selected workout %s", workout_id)
        return session

    # ----- tracking -----

    def start_tracking(self, wait: bool = False) -> TelemetryChannel:
        """
        Open the telemetry channel for the current session.

        Args:
            wait: Block until the channel is ready, bounded by the configured
                ready timeout

        Raises:
            ProtocolError: If there is no active session
        """
        session_id = self.state.session_id
        if not self.state.has_session():
            raise ProtocolError("Cannot start tracking without a session")

        with self._channel_lock:
            channel = self.channel
            if channel is None or channel.state in (ChannelState.CANCELLED, ChannelState.FAILED):
                cfg = self.telemetry_config
                channel = self._channel_factory(cfg.host, cfg.port, session_id, receive=cfg.receive)
                channel.initialize()
                self.channel = channel

        if wait and not channel.wait_until_ready(self.telemetry_config.ready_timeout):
            logger.warning(
                "Telemetry channel not ready after %.1fs (state %s)",
                self.telemetry_config.ready_timeout, channel.state.value,
            )
        return channel

    def stop_tracking(self) -> None:
        with self._channel_lock:
            channel, self.channel = self.channel, None
        if channel:
            channel.close()

    def on_sensor_update(self, frame: JointFrame) -> None:
        """
        Handle one sensor tick: stream the frame, then maybe poll.

        Never blocks on the network and never raises for network failures.
        """
        channel = self.channel
        if channel is not None:
            channel.send_frame(frame)
        self.tick()

    # ----- polling -----

    def tick(self) -> bool:
        """
        Issue a poll unless one is already in flight.

        Returns:
            True if a new poll was submitted
        """
        with self._poll_lock:
            session_id = self.state.session_id
            if self._closed or session_id == NO_SESSION:
                return False
            now = self._clock()
            if self._poll_outstanding:
                if now - self._poll_started < self.sync_config.poll_timeout:
                    return False
                logger.warning(
                    "Poll outstanding for %.1fs, treating it as failed", now - self._poll_started
                )
                self._write_off_locked()

            self._poll_outstanding = True
            self._poll_started = now
            self.polls_issued += 1
            self._poll_future = self._executor.submit(
                self._run_poll, self._poll_generation, session_id
            )
        return True

    def _run_poll(self, generation: int, session_id: int) -> None:
        with self._poll_lock:
            if generation != self._poll_generation:
                # Written off while queued; the backend must not see it
                return
        try:
            delta = self.control.poll(session_id, timeout=self.sync_config.poll_timeout)
        except SyncError as e:
            logger.warning("Poll failed: %s", e)
            self._finish_poll(generation)
            return

        with self._poll_lock:
            if generation != self._poll_generation:
                logger.debug("Discarding late poll result %r", delta)
                return
            count = self.state.apply_delta(delta, session_id=session_id)
            self._poll_outstanding = False

        if count is None:
            logger.debug("Discarding poll result for ended session %s", session_id)
        elif delta != NOTHING:
            logger.info("Repetition detected, count is now %d", count)
            self._notify(self.state.snapshot())
        else:
            logger.debug("No new repetition (count %d)", count)

    def _finish_poll(self, generation: int) -> None:
        with self._poll_lock:
            if generation == self._poll_generation:
                self._poll_outstanding = False

    def _write_off_locked(self) -> None:
        """Invalidate the current poll and cancel it if it has not started; caller holds the lock."""
        self._poll_generation += 1
        if self._poll_future is not None:
            self._poll_future.cancel()

    def _abandon_poll(self) -> None:
        """Forget any in-flight poll so its result is never applied."""
        with self._poll_lock:
            self._write_off_locked()
            self._poll_outstanding = False

    def poll_outstanding(self) -> bool:
        with self._poll_lock:
            return self._poll_outstanding

    def wait_for_poll(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the most recently submitted poll to finish.

        Returns:
            True if no poll is pending when this returns
        """
        future = self._poll_future
        if future is None:
            return True
        done, _ = wait_futures([future], timeout=timeout)
        return bool(done)

    # ----- lifecycle -----

    def close(self) -> None:
        """Stop tracking, cancel queued polls and close the HTTP session."""
        with self._poll_lock:
            if self._closed:
                return
            self._closed = True
        self.stop_tracking()
        self._executor.shutdown(wait=False, cancel_futures=True)
        self.control.close()

    def __enter__(self) -> "SyncCoordinator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
