import os
import sys
import pytest

# Ensure the backend root (containing the `padel_score` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from padel_score import create_app, db, socketio
from padel_score.models import Match, new_id
from padel_score.services.matches import MatchOrchestrator


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = ['http://localhost:5173']
    SOCKETIO_ASYNC_MODE = 'threading'
    BROADCAST_MATCH_UPDATES = True


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import padel_score.models  # noqa: F401
        db.create_all()
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
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')


@pytest.fixture()
def orchestrator(flask_app):
    return MatchOrchestrator(db.session)


@pytest.fixture()
def make_match(flask_app):
    """A bare LIVE match row without state, for store level tests."""
    def _make(owner_id='u1', status='LIVE'):
        match = Match(id=new_id(), owner_id=owner_id, status=status)
        db.session.add(match)
        db.session.flush()
        return match
    return _make
