import time

from roomrelay import create_app
from roomrelay.services.rooms.scheduler import schedule_later, start_sweeper

from conftest import TestConfig


def test_schedule_later_runs_once(flask_app):
    calls = []
    schedule_later(0.05, calls.append, 'fired')
    deadline = time.time() + 2.0
    while time.time() < deadline and not calls:
        time.sleep(0.02)
    time.sleep(0.1)
    assert calls == ['fired']


def test_schedule_later_survives_callback_errors(flask_app):
    calls = []

    def _boom():
        raise RuntimeError('boom')

    schedule_later(0, _boom)
    schedule_later(0.05, calls.append, 'after')
    deadline = time.time() + 2.0
    while time.time() < deadline and not calls:
        time.sleep(0.02)
    assert calls == ['after']


def test_sweeper_disabled_in_tests(flask_app):
    assert start_sweeper(flask_app, flask_app.extensions['rooms']) is False


class SweepingConfig(TestConfig):
    ENABLE_SWEEPER_IN_TESTS = True
    ROOM_SWEEP_INTERVAL_SEC = 0.05
    ROOM_MAX_AGE_SEC = 0.1


def test_sweeper_evicts_expired_rooms():
    from conftest import FakeConnection

    app = create_app(SweepingConfig)
    registry = app.extensions['rooms']
    # create_app already started it
    assert start_sweeper(app, registry) is False

    room = registry.create_room(FakeConnection('host'))
    deadline = time.time() + 3.0
    while time.time() < deadline and room.code in registry:
        time.sleep(0.05)
    assert room.code not in registry
