"""
Data Models
===========

Request bodies, decoded responses and the session snapshot.

Request bodies are plain dataclasses exposing ``to_dict()``; anything with
that method satisfies ``Encodable`` and can be sent by the control client.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Protocol

NO_SESSION = -1
NO_WORKOUT = -1

# Poll delta meaning "no new repetition since the last poll"
NOTHING = "nothing"


class Encodable(Protocol):
    """Anything that encodes itself to a JSON-compatible document."""

    def to_dict(self) -> Dict[str, Any]:
        ...


class WorkoutType(str, Enum):
    BICEP_CURL = "Bicep Curl"
    JUMPING_JACKS = "Jumping Jacks"


@dataclass(frozen=True)
class Session:
    """
    Immutable view of the session state.

    Attributes:
        session_id (int): Backend-assigned session, ``NO_SESSION`` if none
        active_workout_id (int): Selected workout, ``NO_WORKOUT`` if none
        repetition_count (int): Repetitions reported by the backend so far
    """
    session_id: int = NO_SESSION
    active_workout_id: int = NO_WORKOUT
    repetition_count: int = 0


@dataclass
class Credentials:
    """Login / registration details. Never persisted."""
    name: str = ""
    email: str = ""
    password: str = field(default="", repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "email": self.email, "password": self.password}


@dataclass
class WorkoutSpec:
    """A workout template created from the workout form."""
    name: str
    rep_count: int
    type: WorkoutType = WorkoutType.BICEP_CURL
    weight: int = 0  # pounds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "repCount": int(self.rep_count),
            "type": WorkoutType(self.type).value,
            "weight": int(self.weight),
        }


@dataclass
class WithSession:
    """Wraps a workout body with the session it belongs to."""
    session_id: int
    workout: Encodable

    def to_dict(self) -> Dict[str, Any]:
        return {"sessionID": self.session_id, "workout": self.workout.to_dict()}


@dataclass
class PollRequest:
    session_id: int

    def to_dict(self) -> Dict[str, Any]:
        return {"ID": self.session_id}


@dataclass(frozen=True)
class WorkoutSummary:
    """One entry of the ``/getWorkouts`` listing."""
    id: int
    name: str
    workout_type: str
    reps: int
    created_date: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkoutSummary":
        """Build from a response object; raises KeyError/TypeError/ValueError."""
        workout_id = data["id"]
        reps = data["reps"]
        if isinstance(workout_id, bool) or not isinstance(workout_id, int):
            raise TypeError(f"workout id must be an integer, got {workout_id!r}")
        if isinstance(reps, bool) or not isinstance(reps, int):
            raise TypeError(f"reps must be an integer, got {reps!r}")
        return cls(
            id=workout_id,
            name=str(data["name"]),
            workout_type=str(data["workoutType"]),
            reps=reps,
            created_date=str(data.get("createdDate", "")),
        )


@dataclass
class OperationResult:
    """
    Outcome of a user-facing coordinator operation.

    Failures carry the ``SyncError`` that caused them instead of raising,
    so the UI layer can report them without crashing.
    """
    ok: bool
    value: Any = None
    error: Optional[Exception] = None

    @classmethod
    def success(cls, value: Any = None) -> "OperationResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: Exception) -> "OperationResult":
        return cls(ok=False, error=error)
