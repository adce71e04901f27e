import json
import os
import sys
import pytest

# Ensure the backend root (containing the `quizrooms` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from quizrooms import create_app, db, socketio
from quizrooms.services.rooms import Question, RoomRegistry, RoomService
from quizrooms.services.rooms.errors import PersistenceFailure
from quizrooms.services.rooms.scheduler import ONE_SHOT, REPEATING, TimerHandle


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = 'DEBUG'
    CORS_ORIGINS = ['http://localhost:4200']
    SOCKETIO_NAMESPACE = '/'
    QUESTION_TIME_LIMIT_SEC = 20
    REVEAL_DURATION_SEC = 3
    TIMER_TICK_SEC = 1
    DEFAULT_NUM_QUESTIONS = 10
    MAX_QUESTIONS_PER_ROOM = 50
    MAX_ROOM_PLAYERS = 15
    ROOM_CODE_ATTEMPTS = 50
    ALLOW_LATE_JOIN = False
    ABANDON_EMPTY_ROOMS = True
    CHAT_MAX_LENGTH = 50


class ManualScheduler:
    """Arms timers without running them; tests fire them explicitly."""

    def __init__(self):
        self.armed = []

    def every(self, interval, callback):
        return self._arm(TimerHandle(REPEATING, interval), callback)

    def call_later(self, delay, callback):
        return self._arm(TimerHandle(ONE_SHOT, delay), callback)

    def _arm(self, handle, callback):
        self.armed.append((handle, callback))
        return handle

    def active(self, kind=None):
        return [h for h, _ in self.armed if h.active and (kind is None or h.kind == kind)]

    def fire(self, kind, room_code=None):
        for handle, callback in reversed(self.armed):
            if handle.kind != kind or not handle.active:
                continue
            if room_code is not None and callback.args[0] != room_code:
                continue
            handle.fired += 1
            callback(handle)
            if kind == ONE_SHOT:
                handle.cancel()
            return handle
        raise AssertionError(f'no active {kind} timer')

    def fire_handle(self, handle):
        """Run a handle's callback even if it was cancelled (a late wake-up)."""
        for armed, callback in self.armed:
            if armed is handle:
                callback(handle)
                return
        raise AssertionError('unknown timer handle')

    def tick(self, times=1, room_code=None):
        for _ in range(times):
            self.fire(REPEATING, room_code)

    def end_reveal(self, room_code=None):
        return self.fire(ONE_SHOT, room_code)


class RecordingBroadcaster:
    def __init__(self):
        self.events = []

    def emit(self, room_code, event, payload):
        self.events.append((room_code, event, payload))

    def names(self, room_code=None):
        return [e for c, e, _ in self.events if room_code is None or c == room_code]

    def payloads(self, event):
        return [p for _, e, p in self.events if e == event]

    def last(self, event):
        found = self.payloads(event)
        assert found, f'no {event} emitted'
        return found[-1]

    def clear(self):
        self.events.clear()


class StaticQuestionSource:
    def __init__(self, questions=()):
        self.questions = list(questions)
        self.calls = []

    def fetch_questions(self, domain, count):
        self.calls.append((domain, count))
        return list(self.questions[:count])


class RecordingScoreSink:
    def __init__(self, fail_for=()):
        self.fail_for = set(fail_for)
        self.saved = []
        self.calls = []

    def persist_score(self, username, score, domain):
        self.calls.append((username, score, domain))
        if username in self.fail_for:
            raise PersistenceFailure(f'Could not save score for {username}')
        self.saved.append((username, score, domain))


def build_questions(count, correct_index=0, domain='Quant'):
    return [
        Question(text=f'Question {i + 1}?', options=('A', 'B', 'C', 'D'), correct_index=correct_index, domain=domain)
        for i in range(count)
    ]


@pytest.fixture()
def make_questions():
    return build_questions


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def score_sink():
    return RecordingScoreSink()


@pytest.fixture()
def question_source():
    return StaticQuestionSource(build_questions(3))


@pytest.fixture()
def make_service(question_source, score_sink, broadcaster, scheduler):
    def _make(**kwargs):
        kwargs.setdefault('default_time_limit', 20)
        return RoomService(
            RoomRegistry(),
            kwargs.pop('question_source', question_source),
            kwargs.pop('score_sink', score_sink),
            broadcaster,
            scheduler,
            **kwargs,
        )
    return _make


@pytest.fixture()
def service(make_service):
    return make_service()


def seed_questions(rows):
    from quizrooms.models import QuestionRecord
    for domain, text, options, answer in rows:
        db.session.add(QuestionRecord(question=text, options=json.dumps(options), answer=answer, domain=domain))
    db.session.commit()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    # Timers are fired by hand in tests
    application.extensions['quizrooms'].scheduler = ManualScheduler()
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def seeded(flask_app):
    seed_questions([
        ('Quant', 'What is 2 + 2?', ['3', '4', '5', '6'], 1),
        ('Quant', 'What is 3 * 3?', ['6', '9', '12', '8'], 1),
        ('Verbal', 'Synonym of "rapid"?', ['Slow', 'Fast', 'Late', 'Dull'], 1),
    ])
    return flask_app


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _connect():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except RuntimeError:
            pass
