"""
Pytest fixtures for stockroom backend tests.

Provides the app (SQLite in-memory), test client, per-test table wipe,
stores for contract tests (one run per backend), and auth helpers.
"""

import pytest

from stockroom import create_app
from stockroom.extensions import db
from stockroom.services import auth_service
from stockroom.storage import MemoryStore, SqlAlchemyStore, get_selector


TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_ENGINE_OPTIONS': {},
        'STORE_PROBE_INTERVAL_SECONDS': 0,
        'FALLBACK_SEED_ENABLED': False,
        'FEDERATED_LOGIN_ENABLED': True,
        'BCRYPT_ROUNDS': 4,
    })

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.drop_all()


@pytest.fixture(autouse=True)
def clean_state(app):
    """Empty every table, reset the fallback store and reconnect the persistent one."""
    with app.app_context():
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        selector = get_selector()
        selector.fallback = MemoryStore()
        selector.connectivity.mark_connected()

    yield


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(params=["persistent", "memory"])
def store(request, app):
    """Each contract test runs once against SqlAlchemyStore and once against MemoryStore."""
    with app.app_context():
        if request.param == "persistent":
            yield SqlAlchemyStore()
        else:
            yield MemoryStore()


@pytest.fixture
def use_memory_store(app):
    """Route requests to the in-memory store, as if the database had gone away."""
    with app.app_context():
        selector = get_selector()
        selector.connectivity.mark_unreachable("test")
        yield selector.fallback


@pytest.fixture
def admin_user(app):
    with app.app_context():
        return auth_service.register_user(
            email="admin@example.com", password=TEST_PASSWORD, name="Admin", role="admin"
        )


@pytest.fixture
def regular_user(app):
    with app.app_context():
        return auth_service.register_user(
            email="user@example.com", password=TEST_PASSWORD, name="Regular User"
        )


@pytest.fixture
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user["email"], TEST_PASSWORD))


@pytest.fixture
def user_headers(client, regular_user):
    return auth_headers(get_auth_token(client, regular_user["email"], TEST_PASSWORD))


@pytest.fixture
def category(client, admin_headers):
    resp = client.post(
        '/api/categories',
        json={'name': 'Electronics', 'description': 'Devices'},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    return resp.json


def get_auth_token(client, email: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def make_product(client, headers, category_id, **overrides) -> dict:
    payload = {
        'sku': 'SKU-001',
        'name': 'Widget',
        'description': 'A useful widget',
        'price': 10.5,
        'stock_quantity': 0,
        'min_stock_level': 2,
        'category_id': category_id,
    }
    payload.update(overrides)
    resp = client.post('/api/products', json=payload, headers=headers)
    assert resp.status_code == 201, resp.json
    return resp.json
