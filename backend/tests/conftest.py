import os
import sys
import random
import pytest

# Ensure the backend root (containing the `sketchrelay` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from sketchrelay import create_app, db, socketio
from sketchrelay.auth import UserSession


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    CORS_ORIGINS = []
    DEV_LOGIN = True
    MIN_PLAYERS = 4
    MAX_OPEN_GAMES_PER_USER = 10
    MAX_DESCRIPTION_LENGTH = 100
    MAX_NAME_LENGTH = 40
    MAX_IMG_SIZE = 6000
    MAX_DRAWING_BYTES = 4096
    SOCKETIO_PING_INTERVAL = 30


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    # No context stays pushed: Flask-Login caches the user on g, so each
    # test-client request needs its own
    with application.app_context():
        # Ensure models are imported so tables are created
        import sketchrelay.models  # noqa: F401
        db.create_all()
    yield application
    application.extensions['game_fanout'].close()
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def app_ctx(flask_app):
    """App context for tests that call services directly."""
    with flask_app.app_context():
        yield flask_app
        db.session.remove()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def rng():
    return random.Random(1234)


@pytest.fixture()
def users():
    return [UserSession(f'user-{i}', name, f'https://example.com/{i}.png')
            for i, name in enumerate(['Alice', 'Bob', 'Cara', 'Dan', 'Erin'])]


@pytest.fixture()
def events(flask_app):
    """Game ids announced on the change channel during the test."""
    seen = []
    unsubscribe = flask_app.extensions['game_notifier'].subscribe(seen.append)
    yield seen
    unsubscribe()


@pytest.fixture()
def login(flask_app):
    """Factory returning a Flask test client logged in as the given user."""
    def _login(user_id, name):
        test_client = flask_app.test_client()
        res = test_client.post('/auth/login', json={'id': user_id, 'name': name})
        assert res.status_code == 200
        return test_client
    return _login


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _connect(flask_client=None, game_id=None):
        query = f'game_id={game_id}' if game_id else None
        test_client = socketio.test_client(
            flask_app,
            namespace='/ws',
            query_string=query,
            flask_test_client=flask_client,
        )
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            test_client.disconnect(namespace='/ws')
        except Exception:
            pass
