import random
import threading
import time

import pytest

from conspiracy.game.registry import RoomRegistry
from conspiracy.server import create_app


class FakeScheduler:
    """Records background tasks instead of running them; tests tick by hand."""

    def __init__(self):
        self.tasks = []

    def start_background_task(self, target, *args, **kwargs):
        self.tasks.append(target)

    def sleep(self, seconds=0):
        pass

    @property
    def timers(self):
        return [task.__self__ for task in self.tasks]


class ThreadScheduler:
    """Runs timers on real threads, like Flask-SocketIO's threading mode."""

    def start_background_task(self, target, *args, **kwargs):
        th = threading.Thread(target=target, args=args, kwargs=kwargs, daemon=True)
        th.start()
        return th

    def sleep(self, seconds=0):
        time.sleep(seconds)


class Outbox:
    def __init__(self):
        self.sent = []

    def __call__(self, event, payload=None, to=None, **kwargs):
        self.sent.append((to, event, payload))

    def payloads(self, event):
        return [payload for _, name, payload in self.sent if name == event]

    def last(self, event):
        found = self.payloads(event)
        return found[-1] if found else None

    def clear(self):
        self.sent.clear()


@pytest.fixture()
def scheduler():
    return FakeScheduler()


@pytest.fixture()
def outbox():
    return Outbox()


@pytest.fixture()
def thread_scheduler():
    return ThreadScheduler()


@pytest.fixture()
def registry(scheduler, outbox):
    return RoomRegistry(scheduler=scheduler, emit=outbox, rng=random.Random(1234))


@pytest.fixture()
def room(registry):
    return registry.create()


@pytest.fixture()
def alice_bob(room):
    alice, _ = room.add_player("sid-alice", "Alice")
    bob, _ = room.add_player("sid-bob", "Bob")
    return alice, bob


class TestConfig:
    TESTING = True
    SECRET_KEY = "test-secret"
    CORS_ORIGINS = "*"
    LOG_LEVEL = "DEBUG"
    ROUND_DURATION_SEC = 60
    MAX_ROUNDS = 4
    MAX_NAME_LENGTH = 20
    MIN_PLAYERS = 1
    ROOM_CODE_LENGTH = 4


@pytest.fixture()
def flask_app():
    application, _ = create_app(TestConfig, async_mode="threading")
    yield application
    for r in application.extensions["rooms"].list_rooms():
        r.close()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    socketio = flask_app.extensions["socketio"]
    clients = []

    def _make():
        c = socketio.test_client(flask_app)
        clients.append(c)
        return c

    yield _make

    for c in clients:
        try:
            if c.is_connected():
                c.disconnect()
        except Exception:
            pass
