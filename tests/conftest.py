"""
Shared pytest fixtures for tournament registration tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.models import Event
from core.session import AdminSession
from core.validation import validate_event
from storage.local import LocalEventStore

# 1x1 transparent PNG
PNG_DATA_URL = (
    'data:image/png;base64,'
    'iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=='
)


@pytest.fixture
def valid_draft():
    """A complete event form as a browser would submit it."""
    return {
        'imageDataUrl': PNG_DATA_URL,
        'title': '  Cup  ',
        'date': '01.03.2026.',
        'location': 'Zagreb',
        'preregFee': '10',
        'nonRegFee': '12.5',
        'playerCap': '2',
        'swissRounds': '5',
        'topCut': 'Top 8',
        'regStartTime': '09:30',
        'tournamentStartTime': '10:00',
        'preregStartDate': '1/2/26',
        'preregEndDate': '28-02-2026',
        'description': 'Standard format',
        'notes': '',
    }


@pytest.fixture
def make_event(valid_draft):
    """Build a validated Event, optionally overriding draft fields."""
    def _make(event_id='evt_test', **overrides):
        draft = dict(valid_draft)
        draft.update(overrides)
        return Event.create(validate_event(draft), event_id)
    return _make


@pytest.fixture
def store(tmp_path):
    """A file store in a temporary data directory."""
    return LocalEventStore(str(tmp_path / 'data'))


@pytest.fixture
def admin():
    session = AdminSession({}, 'admin', 'secret')
    session.login('admin', 'secret')
    return session


@pytest.fixture
def visitor():
    return AdminSession({}, 'admin', 'secret')


@pytest.fixture
def app_data_dir(tmp_path, monkeypatch):
    """Point the Flask app at a temporary data directory."""
    import app as app_module

    data_dir = tmp_path / 'data'
    data_dir.mkdir()
    monkeypatch.setattr(app_module, 'DATA_DIR', str(data_dir))
    monkeypatch.setattr(app_module, 'ADMIN_USERNAME', 'admin')
    monkeypatch.setattr(app_module, 'ADMIN_PASSWORD', 'secret')
    monkeypatch.delenv('ADMIN_API_KEY', raising=False)
    return str(data_dir)


@pytest.fixture
def client(app_data_dir):
    """Create an unauthenticated test client."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def admin_client(client):
    """Create a test client with an admin session."""
    with client.session_transaction() as sess:
        sess['is_admin'] = True
    return client
