import os
import sys
import threading
import time
import pytest

# Ensure the backend root (containing the `fakeout` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from fakeout import create_app, socketio
from fakeout.models import Player, Session


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    ANSWER_DURATION_SEC = 5.0
    DELIBERATION_DURATION_SEC = 5.0
    RESULTS_PAUSE_SEC = 0.0
    TIER_COUNT = 1
    QUESTIONS_PER_TIER = 1
    MIN_PLAYERS = 1
    MAX_PLAYERS = 6
    GAME_CODE_LENGTH = 6
    ANSWER_MAX_LEN = 120
    CHAT_MAX_LEN = 200
    REJOIN_ACTIVE_ROUND = True
    QUESTIONS_PATH = None
    LOG_LEVEL = 'DEBUG'


class RecordingNotifier:
    """Notifier double that keeps every message and lets tests wait on them."""

    def __init__(self):
        self.events = []
        self._cond = threading.Condition()

    def _record(self, entry):
        with self._cond:
            self.events.append(entry)
            self._cond.notify_all()

    def send_to_player(self, code, player_id, event, payload):
        self._record({'to': player_id, 'code': code, 'event': event, 'payload': payload})

    def broadcast(self, code, event, payload):
        self._record({'to': None, 'code': code, 'event': event, 'payload': payload})

    def named(self, event):
        with self._cond:
            return [e for e in self.events if e['event'] == event]

    def wait_for(self, event, count=1, timeout=5.0):
        deadline = time.time() + timeout
        with self._cond:
            while len([e for e in self.events if e['event'] == event]) < count:
                remaining = deadline - time.time()
                if remaining <= 0:
                    raise AssertionError(f"timed out waiting for {count} x {event!r}")
                self._cond.wait(remaining)
            return [e for e in self.events if e['event'] == event]


class PickPlayer:
    """Stands in for random.Random so tests decide who gets the fake prompt."""

    def __init__(self, player_id):
        self.player_id = player_id

    def choice(self, seq):
        return next(p for p in seq if p.id == self.player_id)


def make_session(code='ABC123', names=('Alice', 'Bob', 'Cara')):
    session = Session(code=code)
    for i, name in enumerate(names):
        session.players.append(Player(id=name.lower(), name=name, sid=f'sid-{i}'))
    if session.players:
        session.host_id = session.players[0].id
    return session


def wait_until(predicate, timeout=5.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    raise AssertionError('condition not met before timeout')


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
