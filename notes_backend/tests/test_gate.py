from datetime import timedelta

import pytest

from notes_backend.api.errors import AuthorizationError
from notes_backend.api.gate import AuthenticatedIdentity, authorize
from notes_backend.api.security import TokenService

NOW = 1_700_000_000


def test_authorize_valid_token(tokens):
    token = tokens.issue(5, now=NOW)
    assert authorize(token, tokens, now=NOW) == AuthenticatedIdentity(user_id=5)

@pytest.mark.parametrize("raw", [None, ""])
def test_authorize_missing_token(tokens, raw):
    with pytest.raises(AuthorizationError) as exc_info:
        authorize(raw, tokens, now=NOW)
    assert exc_info.value.reason == "missing token"
    assert exc_info.value.status_code == 401

def test_authorize_expired_token(tokens):
    token = tokens.issue(5, ttl=timedelta(seconds=10), now=NOW)
    with pytest.raises(AuthorizationError) as exc_info:
        authorize(token, tokens, now=NOW + 11)
    assert exc_info.value.reason == "expired token"
    assert exc_info.value.detail == "Could not validate credentials."

def test_authorize_foreign_token(tokens):
    token = TokenService("another-secret").issue(5, now=NOW)
    with pytest.raises(AuthorizationError) as exc_info:
        authorize(token, tokens, now=NOW)
    assert exc_info.value.reason == "bad token signature"
    assert exc_info.value.detail == "Could not validate credentials."
