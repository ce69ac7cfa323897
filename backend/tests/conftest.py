"""
Pytest fixtures for opsdesk backend tests.

Provides the app on in-memory SQLite, a per-test database wipe, an
in-memory blob store, a user factory and login helpers.
"""

import pytest
from sqlalchemy.exc import OperationalError

from opsdesk import create_app
from opsdesk.extensions import db
from opsdesk.models import Product
from opsdesk.services import permission_service, user_service
from opsdesk.services.storage import BlobStore


DEFAULT_PASSWORD = "secret123"


class InMemoryBlobStore(BlobStore):
    """Blob store double that keeps objects in a dict."""

    def __init__(self):
        self.objects = {}
        self.fail_deletes = False

    def put(self, key, data, content_type=None):
        self.objects[key] = (data, content_type)

    def signed_read_url(self, key, ttl):
        return f"https://blob.test/{key}?op=read&ttl={ttl}"

    def signed_write_url(self, key, content_type, ttl):
        return f"https://blob.test/{key}?op=write&ttl={ttl}"

    def delete(self, key):
        if self.fail_deletes:
            raise OSError("storage unavailable")
        self.objects.pop(key, None)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'MEDIA_DAILY_TARGET': 3,
        'LOG_LEVEL': 'WARNING',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def blob_store(app):
    store = InMemoryBlobStore()
    app.extensions["blob_store"] = store
    return store


@pytest.fixture(scope='function')
def db_session(app, blob_store):
    """Fresh database for each test with permission rows seeded."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        permission_service.initialize_permissions()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def fail_commit_when(db_session, monkeypatch):
    """
    fail_commit_when(predicate): the first commit made while predicate()
    is true raises OperationalError, as a lost database lock would.
    """
    def _arm(predicate):
        session = db.session()
        real_commit = session.commit
        state = {"failed": False}

        def _commit():
            if not state["failed"] and predicate():
                state["failed"] = True
                raise OperationalError("COMMIT", {}, Exception("database is locked"))
            return real_commit()

        monkeypatch.setattr(session, "commit", _commit)
    return _arm


@pytest.fixture(scope='function')
def make_user(db_session):
    """Factory: make_user("alice", ["stock_add"], user_type="salesman", leader=None)."""
    def _make(username, permissions=(), *, user_type="salesman", leader=None, real_name=None):
        user = user_service.create_user(
            username=username,
            password=DEFAULT_PASSWORD,
            real_name=real_name or username.title(),
            user_type=user_type,
            leader_id=leader.id if leader else None,
            permissions=list(permissions),
        )
        db_session.commit()
        return user
    return _make


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product("Widget", stock=10)."""
    def _make(name, stock=0, *, sku=None, min_stock=0, unit="箱"):
        product = Product(name=name, sku=sku, stock=stock, min_stock=min_stock, unit=unit)
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def login(client):
    """login(user) -> Authorization headers for a fresh session."""
    def _login(user, password=DEFAULT_PASSWORD):
        token = get_auth_token(client, user.username, password)
        assert token, f"login failed for {user.username}"
        return auth_headers(token)
    return _login


def get_auth_token(client, username: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json['data']['token']
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
