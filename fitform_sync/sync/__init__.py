"""
Sync Module
===========

Session state and the coordinator that keeps it in step with the backend.
"""

from .coordinator import SyncCoordinator
from .session_state import SessionState

__all__ = ["SyncCoordinator", "SessionState"]
