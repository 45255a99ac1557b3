"""
Session State Module
====================

The small mutable session record shared by the control calls, the poll
loop and the sensor loop. Every read and write goes through one lock.
"""

import threading
from dataclasses import replace
from typing import Optional

from ..models import NO_SESSION, NO_WORKOUT, NOTHING, Session


class SessionState:
    """
    Lock-protected session record.

    Readers get immutable ``Session`` snapshots; writers go through the
    methods below, which hold the lock for the whole read-modify-write.
    """

    def __init__(self):
        """Initialize with no active session."""
        self._lock = threading.Lock()
        self._session = Session()

    def snapshot(self) -> Session:
        with self._lock:
            return self._session

    @property
    def session_id(self) -> int:
        with self._lock:
            return self._session.session_id

    @property
    def repetition_count(self) -> int:
        with self._lock:
            return self._session.repetition_count

    def has_session(self) -> bool:
        return self.session_id != NO_SESSION

    def set_session_id(self, session_id: int) -> Session:
        """Start a new session; the repetition count starts over."""
        with self._lock:
            self._session = Session(session_id=session_id)
            return self._session

    def select_workout(self, workout_id: int) -> Session:
        with self._lock:
            self._session = replace(self._session, active_workout_id=workout_id, repetition_count=0)
            return self._session

    def apply_delta(self, delta: str, session_id: Optional[int] = None) -> Optional[int]:
        """
        Apply a poll delta.

        Any value other than "nothing" counts as exactly one repetition.

        Args:
            delta: The poll response's ``change`` value
            session_id: Session the poll was issued for; if it is no longer
                the current session the delta is ignored

        Returns:
            The repetition count after applying the delta, or None if ignored
        """
        with self._lock:
            if session_id is not None and session_id != self._session.session_id:
                return None
            if delta != NOTHING:
                self._session = replace(
                    self._session, repetition_count=self._session.repetition_count + 1
                )
            return self._session.repetition_count

    def reset_repetitions(self) -> None:
        with self._lock:
            self._session = replace(self._session, repetition_count=0)

    def reset(self) -> None:
        """Back to the no-session sentinels."""
        with self._lock:
            self._session = Session(session_id=NO_SESSION, active_workout_id=NO_WORKOUT)
