import os
import sys
import pytest

# Ensure the backend root (containing the `roomrelay` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from roomrelay import create_app, socketio
from roomrelay.services.rooms import RoomRegistry


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = '*'
    ROOM_CODE_LENGTH = 6
    ROOM_GRACE_PERIOD_SEC = 60
    ROOM_MAX_AGE_SEC = 2 * 60 * 60
    ROOM_SWEEP_INTERVAL_SEC = 300


class FakeConnection:
    """Records everything the registry sends to it."""

    def __init__(self, name):
        self.name = name
        self.sent = []

    def send(self, event, payload):
        self.sent.append((event, payload))

    def events(self):
        return [event for event, _ in self.sent]

    def __repr__(self):
        return f"FakeConnection({self.name!r})"


class FakeClock:
    def __init__(self, start=1_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class ScheduleRecorder:
    """Stands in for the background timer; fire() runs what was armed."""

    def __init__(self):
        self.calls = []

    def __call__(self, delay, fn, *args):
        self.calls.append((delay, fn, args))

    def fire_all(self):
        results = [fn(*args) for _, fn, args in self.calls]
        self.calls = []
        return results


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def scheduled():
    return ScheduleRecorder()


@pytest.fixture()
def registry(clock, scheduled):
    return RoomRegistry(clock=clock, grace_period=60, max_age=2 * 60 * 60, schedule=scheduled)


@pytest.fixture()
def host():
    return FakeConnection('host')


@pytest.fixture()
def guest():
    return FakeConnection('guest')


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass
