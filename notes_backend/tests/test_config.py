import logging

import pytest

from notes_backend.api.config import load_settings
from notes_backend.api.errors import AuthorizationError, StorageError, ValidationError
from notes_backend.api.main import create_app


def test_secret_key_is_required():
    with pytest.raises(ValueError):
        load_settings({})
    with pytest.raises(ValueError):
        load_settings({"SECRET_KEY": ""})

def test_defaults():
    settings = load_settings({"SECRET_KEY": "s3cret"})
    assert settings.algorithm == "HS256"
    assert settings.access_token_ttl.total_seconds() == 3600
    assert settings.storage_backend == "memory"
    assert settings.cors_origins == ("*",)
    assert "s3cret" not in repr(settings)

def test_values_from_environment():
    settings = load_settings({
        "SECRET_KEY": "s3cret",
        "JWT_ALGORITHM": "hs512",
        "ACCESS_TOKEN_EXPIRE_MINUTES": "5",
        "STORAGE_BACKEND": "sql",
        "DATABASE_URL": "sqlite://",
        "BCRYPT_ROUNDS": "4",
        "CORS_ORIGINS": "http://a.example, http://b.example",
    })
    assert settings.algorithm == "HS512"
    assert settings.access_token_expire_minutes == 5
    assert settings.database_url == "sqlite://"
    assert settings.bcrypt_rounds == 4
    assert settings.cors_origins == ("http://a.example", "http://b.example")

@pytest.mark.parametrize("env", [
    {"SECRET_KEY": "s", "JWT_ALGORITHM": "RS256"},
    {"SECRET_KEY": "s", "ACCESS_TOKEN_EXPIRE_MINUTES": "0"},
    {"SECRET_KEY": "s", "ACCESS_TOKEN_EXPIRE_MINUTES": "soon"},
    {"SECRET_KEY": "s", "STORAGE_BACKEND": "sql"},
])
def test_invalid_settings(env):
    with pytest.raises(ValueError):
        load_settings(env)

def test_create_app_with_sql_backend():
    settings = load_settings({
        "SECRET_KEY": "s3cret",
        "STORAGE_BACKEND": "sql",
        "DATABASE_URL": "sqlite://",
        "BCRYPT_ROUNDS": "4",
    })
    app = create_app(settings)
    assert app.state.settings is settings

def test_unknown_backend_is_rejected():
    settings = load_settings({"SECRET_KEY": "s3cret", "STORAGE_BACKEND": "redis"})
    with pytest.raises(ValueError):
        create_app(settings)

def test_create_app_leaves_logging_alone():
    root = logging.getLogger()
    before = (root.level, list(root.handlers))
    create_app(load_settings({"SECRET_KEY": "s3cret", "LOG_LEVEL": "DEBUG", "BCRYPT_ROUNDS": "4"}))
    assert (root.level, list(root.handlers)) == before

def test_error_statuses():
    assert ValidationError().status_code == 422
    assert AuthorizationError().headers == {"WWW-Authenticate": "Bearer"}
    assert StorageError().detail == "Internal server error."
