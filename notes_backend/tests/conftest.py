import pytest
from fastapi.testclient import TestClient

from notes_backend.api.config import Settings
from notes_backend.api.main import create_app
from notes_backend.api.security import PasswordHasher, TokenService
from notes_database.db import create_db_engine, make_session_factory
from notes_database.init_db import init_db
from notes_database.memory import MemoryCredentialStore, MemoryNoteStore
from notes_database.models import Base
from notes_database.sql import SqlCredentialStore, SqlNoteStore

TEST_SECRET = "test-secret-key"

@pytest.fixture
def settings():
    """Settings for tests: a fixed secret and the cheapest bcrypt cost."""
    return Settings(secret_key=TEST_SECRET, bcrypt_rounds=4, log_level="WARNING")

@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)

@pytest.fixture
def tokens():
    return TokenService(TEST_SECRET)

@pytest.fixture
def engine():
    """Fixture for an in-memory SQLite engine, fresh for every test."""
    engine = init_db(create_db_engine("sqlite://"))
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture(params=["memory", "sql"])
def stores(request):
    """Credential and note stores for both storage variants."""
    if request.param == "memory":
        users = MemoryCredentialStore()
        return users, MemoryNoteStore(users)
    session_factory = make_session_factory(request.getfixturevalue("engine"))
    return SqlCredentialStore(session_factory), SqlNoteStore(session_factory)

@pytest.fixture
def app(settings, stores):
    credentials, note_store = stores
    return create_app(settings, credentials=credentials, note_store=note_store)

@pytest.fixture
def client(app):
    """Fixture for FastAPI TestClient bound to a freshly built app."""
    with TestClient(app) as c:
        yield c

@pytest.fixture
def user_data():
    """Returns default user data for registration."""
    return {
        "username": "alice",
        "password": "alicepassword123"
    }

@pytest.fixture
def second_user_data():
    """Returns a second user's data."""
    return {
        "username": "bob",
        "password": "bobpassword456"
    }

def register_and_auth(client, username, password):
    """Helper for registering then logging in to get a bearer token."""
    r1 = client.post("/auth/register", json={
        "username": username, "password": password
    })
    assert r1.status_code == 201 or r1.status_code == 409

    r2 = client.post("/auth/login", data={
        "username": username, "password": password
    })
    assert r2.status_code == 200
    access_token = r2.json()["access_token"]
    return access_token

@pytest.fixture
def auth_header(client, user_data):
    """Returns {'Authorization': 'Bearer <token>'} for default user."""
    token = register_and_auth(client, user_data["username"], user_data["password"])
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def second_auth_header(client, second_user_data):
    """Returns auth header for second user."""
    token = register_and_auth(client, second_user_data["username"], second_user_data["password"])
    return {"Authorization": f"Bearer {token}"}
