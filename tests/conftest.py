import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient
from bson import ObjectId
from quarry_ledger.main import app
from quarry_ledger.api.deps import get_store
from quarry_ledger.core.auth import create_access_token, get_current_user, get_user_repository
from quarry_ledger.core.security import hash_password
from quarry_ledger.models.user import User, UserRole
from quarry_ledger.utils.locks import KeyedLocks
from tests.fakes import make_store


@pytest.fixture
def store():
    """In-memory ledger store with the default business settings."""
    return make_store()


@pytest.fixture
def locks():
    return KeyedLocks()


@pytest.fixture
def deposit_owner(store):
    """Regular owner holding a 300 deposit."""
    return store.owners.add(name="Ramesh Transport", vehicle_number="MH12AB1234", deposit_balance=300.0)


@pytest.fixture
def partner_owner(store):
    return store.owners.add(
        name="Shree Logistics", vehicle_number="MH14XY9876", is_partner=True, partner_rate=1000.0
    )


def _collection():
    collection = MagicMock()
    for name in (
        "find_one", "insert_one", "update_one", "delete_one", "count_documents",
        "find_one_and_update", "create_index",
    ):
        setattr(collection, name, AsyncMock())
    return collection


@pytest.fixture
def mock_db():
    """Motor database double: every collection exposes AsyncMock CRUD methods."""
    collections = {}
    db = MagicMock()
    db.__getitem__.side_effect = lambda name: collections.setdefault(name, _collection())
    db.collections = collections
    return db


@pytest.fixture
def admin_user():
    return User(
        id=ObjectId("507f1f77bcf86cd799439011"),
        username="admin",
        password_hash=hash_password("admin123"),
        full_name="Administrator",
        role=UserRole.ADMIN,
    )


@pytest.fixture
def clerk_user():
    return User(
        id=ObjectId("507f1f77bcf86cd799439012"),
        username="clerk",
        password_hash=hash_password("clerk123"),
        role=UserRole.USER,
    )


@pytest.fixture
def user_repo(admin_user, clerk_user):
    users = {u.username: u for u in (admin_user, clerk_user)}
    repo = MagicMock()
    repo.get_user_by_username = AsyncMock(side_effect=lambda name: users.get(name))
    repo.get_user_by_id = AsyncMock(
        side_effect=lambda uid: next((u for u in users.values() if str(u.id) == uid), None)
    )
    repo.create_user = AsyncMock()
    return repo


@pytest.fixture
def client(store, user_repo):
    """TestClient over the fake store; startup hooks (Mongo) are not run."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_user_repository] = lambda: user_repo
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_client(client, clerk_user):
    """Client authenticated as a regular user."""
    app.dependency_overrides[get_current_user] = lambda: clerk_user
    return client


@pytest.fixture
def admin_client(client, admin_user):
    """Client authenticated as the admin."""
    app.dependency_overrides[get_current_user] = lambda: admin_user
    return client


@pytest.fixture
def admin_token(admin_user):
    return create_access_token(admin_user)


@pytest.fixture
def clerk_token(clerk_user):
    return create_access_token(clerk_user)
