"""
Integration tests for the HTTP control client.

Runs the real requests-based client against the Flask fake backend.
"""

import socket

import pytest

from fitform_sync.errors import DecodeError, EncodeError, TransportError
from fitform_sync.models import Credentials, WorkoutSpec, WorkoutSummary, WorkoutType
from fitform_sync.transport import ControlClient


@pytest.fixture
def credentials():
    return Credentials(name="A", email="a@x.com", password="p")


def _closed_port() -> int:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


class TestAuthentication:
    """Test suite for /signin and /signup."""

    def test_login_returns_session_id(self, control, backend, credentials):
        assert control.login(credentials) == 42

        call = backend.calls("/signin")[0]
        assert call["method"] == "POST"
        assert call["content_type"] == "application/json"
        assert call["json"] == {"name": "A", "email": "a@x.com", "password": "p"}

    def test_register_returns_session_id(self, control, backend, credentials):
        assert control.register(credentials) == 43
        assert backend.calls("/signup")[0]["json"]["email"] == "a@x.com"

    @pytest.mark.parametrize("operation", ["login", "register"])
    @pytest.mark.parametrize("body", [
        {},
        {"id": 42},
        {"ID": "42"},
        {"ID": None},
        {"ID": True},
        [42],
        "not json at all",
    ])
    def test_malformed_auth_response_is_decode_error(self, control, backend, credentials,
                                                     operation, body):
        backend.login_response = body
        backend.signup_response = body
        with pytest.raises(DecodeError):
            getattr(control, operation)(credentials)

    def test_server_error_is_transport_error(self, control, backend, credentials):
        backend.status_codes["/signup"] = 500
        with pytest.raises(TransportError):
            control.register(credentials)

    def test_unreachable_backend_is_transport_error(self, credentials):
        with ControlClient(f"http://127.0.0.1:{_closed_port()}", timeout=1.0) as client:
            with pytest.raises(TransportError):
                client.login(credentials)

    def test_unencodable_body_is_encode_error(self, control, backend):
        with pytest.raises(EncodeError):
            control.login(Credentials(name=object(), email="a@x.com", password="p"))
        assert backend.calls("/signin") == []


class TestWorkouts:
    """Test suite for workout creation and listing."""

    def test_create_workout_wraps_session(self, control, backend):
        spec = WorkoutSpec(name="Arms", rep_count=12, type=WorkoutType.BICEP_CURL, weight=20)
        response = control.create_workout(42, spec)

        assert response == {"status": "created", "id": 7}
        assert backend.calls("/createWorkout")[0]["json"] == {
            "sessionID": 42,
            "workout": {"name": "Arms", "repCount": 12, "type": "Bicep Curl", "weight": 20},
        }

    def test_list_workouts_flattens_routines(self, control, backend):
        workouts = control.list_workouts()

        assert [w.id for w in workouts] == [1, 2]
        assert workouts[0] == WorkoutSummary(
            id=1, name="Arms", workout_type="Bicep Curl", reps=12,
            created_date="2022-08-20 17:48:54.765379",
        )
        assert backend.calls("/getWorkouts")[0]["method"] == "GET"

    def test_list_workouts_accepts_plain_list(self, control, backend):
        backend.workouts_response = [
            {"id": 5, "name": "Jacks", "workoutType": "Jumping Jacks", "reps": 50},
        ]
        workouts = control.list_workouts()
        assert workouts == [WorkoutSummary(id=5, name="Jacks", workout_type="Jumping Jacks", reps=50)]

    def test_malformed_workout_is_decode_error(self, control, backend):
        backend.workouts_response = {"routine": [{"id": 5, "name": "Jacks"}]}
        with pytest.raises(DecodeError):
            control.list_workouts()


class TestPoll:
    """Test suite for /udp/update."""

    def test_poll_sends_session_and_returns_change(self, control, backend):
        backend.poll_responses.extend([{"change": "nothing"}, {"change": "rep"}])

        assert control.poll(42) == "nothing"
        assert control.poll(42) == "rep"
        assert backend.calls("/udp/update")[0]["json"] == {"ID": 42}

    @pytest.mark.parametrize("body", [{}, {"change": 1}, {"changes": "rep"}])
    def test_malformed_poll_response_is_decode_error(self, control, backend, body):
        backend.poll_responses.append(body)
        with pytest.raises(DecodeError):
            control.poll(42)


class RecordingSession:
    """requests.Session double that records request keyword arguments."""

    def __init__(self):
        self.headers = {}
        self.kwargs = []

    def request(self, method, url, **kwargs):
        self.kwargs.append(kwargs)
        raise RequestAborted()

    def close(self):
        pass


class RequestAborted(Exception):
    pass


class TestTimeouts:
    """Test suite for per-request timeouts."""

    def test_default_timeout_used_when_none_given(self):
        http = RecordingSession()
        client = ControlClient("http://backend", timeout=3.0, session=http)
        with pytest.raises(RequestAborted):
            client.poll(42)
        assert http.kwargs[0]["timeout"] == 3.0

    def test_explicit_zero_timeout_is_kept(self):
        http = RecordingSession()
        client = ControlClient("http://backend", timeout=3.0, session=http)
        with pytest.raises(RequestAborted):
            client.poll(42, timeout=0)
        assert http.kwargs[0]["timeout"] == 0
