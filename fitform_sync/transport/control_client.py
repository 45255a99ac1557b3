"""
Control Client Module
=====================

Request/response client for the backend's JSON HTTP API.

Each call is independent: it encodes its body, issues one request and
decodes only the fields it needs. Failures raise a ``SyncError`` subclass
and are never retried here. The client holds no session state; callers pass
the session id in and apply the decoded results themselves.

Endpoints:
    POST /signin         - login, returns {"ID": <session id>}
    POST /signup         - register, returns {"ID": <session id>}
    POST /createWorkout  - create a workout template for the session
    POST /udp/update     - poll for a repetition delta, returns {"change": ...}
    GET  /getWorkouts    - list saved workouts
"""

import json
import logging
from typing import Any, Dict, List, Optional

import requests

from ..errors import DecodeError, EncodeError, TransportError
from ..models import (
    Credentials,
    Encodable,
    PollRequest,
    WithSession,
    WorkoutSpec,
    WorkoutSummary,
)

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}


def _encode(body: Encodable) -> bytes:
    """Serialize a request body to JSON bytes."""
    try:
        return json.dumps(body.to_dict()).encode("utf-8")
    except (AttributeError, TypeError, ValueError) as e:
        raise EncodeError(f"Failed to encode {type(body).__name__}: {e}") from e


def _require_int(data: Dict[str, Any], key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"Response field {key!r} must be an integer, got {value!r}")
    return value


def _require_str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise DecodeError(f"Response field {key!r} must be a string, got {value!r}")
    return value


class ControlClient:
    """
    HTTP control client backed by a ``requests.Session``.

    Attributes:
        base_url (str): Backend root URL, e.g. "http://127.0.0.1:8000"
        timeout (float): Per-request timeout in seconds
    """

    def __init__(self, base_url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()
        self.http.headers.update(JSON_HEADERS)

    def _request(self, method: str, path: str, body: Optional[Encodable] = None,
                 timeout: Optional[float] = None) -> Any:
        """Issue one request and return the decoded JSON document."""
        data = _encode(body) if body is not None else None
        url = self.base_url + path
        if timeout is None:
            timeout = self.timeout

        try:
            response = self.http.request(method, url, data=data, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(f"{method} {path} failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"{method} {path} returned invalid JSON: {e}") from e

    def _request_object(self, method: str, path: str, body: Optional[Encodable] = None,
                        timeout: Optional[float] = None) -> Dict[str, Any]:
        document = self._request(method, path, body, timeout)
        if not isinstance(document, dict):
            raise DecodeError(f"{method} {path} returned {type(document).__name__}, expected an object")
        return document

    def login(self, credentials: Credentials) -> int:
        """
        Sign in and return the backend-assigned session id.

        Raises:
            EncodeError, TransportError, DecodeError
        """
        response = self._request_object("POST", "/signin", credentials)
        session_id = _require_int(response, "ID")
        logger.info("Signed in as %s (session %s)", credentials.email, session_id)
        return session_id

    def register(self, credentials: Credentials) -> int:
        """Create an account and return the new session id."""
        response = self._request_object("POST", "/signup", credentials)
        session_id = _require_int(response, "ID")
        logger.info("Registered %s (session %s)", credentials.email, session_id)
        return session_id

    def create_workout(self, session_id: int, spec: WorkoutSpec) -> Dict[str, Any]:
        """Create a workout template for the session and return the response."""
        response = self._request_object("POST", "/createWorkout", WithSession(session_id, spec))
        logger.info("Created workout %r: %s", spec.name, response)
        return response

    def poll(self, session_id: int, timeout: Optional[float] = None) -> str:
        """
        Ask the backend whether a repetition was detected since the last poll.

        Returns:
            The ``change`` field: "nothing" or any other repetition marker
        """
        response = self._request_object("POST", "/udp/update", PollRequest(session_id), timeout)
        return _require_str(response, "change")

    def list_workouts(self) -> List[WorkoutSummary]:
        """
        Fetch saved workouts.

        Accepts either a plain list of workouts or an object mapping routine
        names to lists of workouts; both are flattened into one list.
        """
        document = self._request("GET", "/getWorkouts")

        if isinstance(document, dict):
            groups = list(document.values())
        elif isinstance(document, list):
            groups = [document]
        else:
            raise DecodeError(f"GET /getWorkouts returned {type(document).__name__}")

        workouts = []
        for group in groups:
            if not isinstance(group, list):
                raise DecodeError("GET /getWorkouts routine entry is not a list")
            for item in group:
                if not isinstance(item, dict):
                    raise DecodeError("GET /getWorkouts workout entry is not an object")
                try:
                    workouts.append(WorkoutSummary.from_dict(item))
                except (KeyError, TypeError, ValueError) as e:
                    raise DecodeError(f"Malformed workout entry {item!r}: {e}") from e
        return workouts

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "ControlClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
