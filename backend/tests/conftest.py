import os
import sys
import time
import pytest

# Ensure the backend root (containing the `geoquiz` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from geoquiz import create_app, db, socketio
from geoquiz.services.quiz.errors import QuizStoreError
from geoquiz.services.quiz.values import Coordinate, Question


ADMIN_TOKEN = 'test-admin-token'

# 30.3539,76.3683 is the reference quiz point; the others sit a few hundred meters away
SEED_QUESTIONS = [
    Question(
        id='q1',
        location=Coordinate(lat=30.3539, lng=76.3683),
        answer='lighthouse',
        hints=('near the bell',),
        clue_index=0,
    ),
    Question(
        id='q2',
        location=Coordinate(lat=30.3562, lng=76.3700),
        answer='Fountain',
        hints=(),
        clue_index=0,
    ),
    Question(
        id='q3',
        location=Coordinate(lat=30.3510, lng=76.3650),
        answer='old oak',
        hints=('look up', 'count the rings'),
        clue_index=1,
        points=25,
    ),
]


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    QUIZ_RADIUS_METERS = 50.0
    POINTS_PER_QUESTION = 10
    LEADERBOARD_SIZE = 10
    ADMIN_TOKEN = ADMIN_TOKEN
    # Tables don't exist until the fixture creates them
    QUIZ_WARM_ON_STARTUP = False
    LOG_BUFFER_SIZE = 200


class MemoryQuestionStore:
    """Question store double. Set ``fail`` to make loads raise; ``delay`` slows them down."""

    def __init__(self, questions=()):
        self.questions = list(questions)
        self.fail = False
        self.delay = 0.0
        self.loads = 0

    def load_all_questions(self):
        self.loads += 1
        if self.delay:
            time.sleep(self.delay)
        if self.fail:
            raise QuizStoreError('store offline')
        return list(self.questions)


class MemoryTeamStore:
    def __init__(self):
        self.saved = {}
        self.fail = False

    def load_team_record(self, team_id):
        return self.saved.get(team_id)

    def save_team_record(self, record):
        if self.fail:
            raise QuizStoreError('write failed')
        self.saved[record.team_id] = record

    def load_all_team_records(self):
        return list(self.saved.values())


@pytest.fixture()
def app_config():
    return TestConfig


@pytest.fixture()
def seed_questions():
    return list(SEED_QUESTIONS)


@pytest.fixture()
def question_store(seed_questions):
    return MemoryQuestionStore(seed_questions)


@pytest.fixture()
def team_store():
    return MemoryTeamStore()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import geoquiz.models  # noqa: F401
        from geoquiz.services.quiz.store import SqlQuizStore
        db.create_all()
        SqlQuizStore(application).upsert_questions(SEED_QUESTIONS)
        service = application.extensions['quiz']
        service.start()
        yield application
        service.shutdown()
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def admin_headers():
    return {'X-Admin-Token': ADMIN_TOKEN}


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
