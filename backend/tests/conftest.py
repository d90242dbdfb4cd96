import os
import sys
import pytest

# Ensure the backend root (containing the `hitgame` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from hitgame import create_app, db, socketio


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    JWT_SECRET_KEY = 'test-jwt-secret-that-is-long-enough-for-hs256'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    BCRYPT_LOG_ROUNDS = 4
    CORS_ORIGINS = ['http://localhost:5173']


class FixedRng:
    """Stand-in for ``random.Random`` returning scripted values.

    Values are consumed in order; the last one repeats forever.
    """

    def __init__(self, *values):
        self.values = list(values)

    def random(self):
        if len(self.values) > 1:
            return self.values.pop(0)
        return self.values[0]


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import hitgame.models  # noqa: F401
        from hitgame.services.game.multipliers import seed_multiplier_table
        db.create_all()
        seed_multiplier_table()
        yield application
        db.session.remove()
        db.drop_all()


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


@pytest.fixture()
def fixed_rng():
    return FixedRng


@pytest.fixture()
def set_rng(flask_app):
    """Script the draws used by '/api/game/hit': 0.0 always hits, 0.99 always misses."""
    def _set(*values):
        flask_app.extensions['hit_rng'] = FixedRng(*values)
    return _set


@pytest.fixture()
def signup(client):
    """Register and log in; returns (user dict, bearer headers)."""
    return lambda email='a@x.com', password='pw': _signup(client, email, password)


def _signup(client, email, password):
    res = client.post('/api/auth/register', json={'email': email, 'password': password})
    assert res.status_code == 201, res.get_json()
    res = client.post('/api/auth/login', json={'email': email, 'password': password})
    assert res.status_code == 200, res.get_json()
    data = res.get_json()
    return data['user'], {'Authorization': f"Bearer {data['token']}"}
