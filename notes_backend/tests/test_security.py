import base64
import json
from datetime import timedelta

import pytest
from jose import jwt

from notes_backend.api.errors import ValidationError
from notes_backend.api.security import (
    TokenBadSignature,
    TokenExpired,
    TokenMalformed,
    TokenService,
)

from conftest import TEST_SECRET

NOW = 1_700_000_000


# -------- PASSWORDS --------
def test_hash_and_verify(hasher):
    digest = hasher.hash("correct horse")
    assert digest != "correct horse"
    assert digest.startswith("$2b$")
    assert hasher.verify("correct horse", digest)
    assert not hasher.verify("wrong horse", digest)

def test_hash_is_salted(hasher):
    assert hasher.hash("same password") != hasher.hash("same password")

def test_verify_rejects_garbage_digest(hasher):
    assert not hasher.verify("anything", "not-a-bcrypt-hash")
    assert not hasher.verify("anything", "")
    assert not hasher.verify("", hasher.hash("secret"))

def test_hash_rejects_empty_password(hasher):
    with pytest.raises(ValidationError):
        hasher.hash("")

def test_hash_rejects_nul_character(hasher):
    with pytest.raises(ValidationError):
        hasher.hash("abc\x00def")

def test_hash_rejects_passwords_longer_than_bcrypt_reads(hasher):
    assert hasher.verify("p" * 72, hasher.hash("p" * 72))
    with pytest.raises(ValidationError):
        hasher.hash("p" * 73)
    # multi-byte characters count by their UTF-8 size
    with pytest.raises(ValidationError):
        hasher.hash("\u00e9" * 37)

def test_verify_does_not_truncate(hasher):
    digest = hasher.hash("p" * 72)
    assert not hasher.verify("p" * 72 + "WRONG", digest)


# -------- TOKENS --------
def test_issue_and_verify(tokens):
    token = tokens.issue(7, ttl=timedelta(minutes=10), now=NOW)
    assert tokens.verify(token, now=NOW + 1) == 7
    claims = jwt.get_unverified_claims(token)
    assert claims == {"sub": "7", "iat": NOW, "exp": NOW + 600}

def test_expiry_boundary(tokens):
    ttl = 300
    token = tokens.issue(1, ttl=timedelta(seconds=ttl), now=NOW)
    assert tokens.verify(token, now=NOW + ttl - 1) == 1
    with pytest.raises(TokenExpired):
        tokens.verify(token, now=NOW + ttl)
    with pytest.raises(TokenExpired):
        tokens.verify(token, now=NOW + ttl + 1)

def test_default_ttl_and_clock():
    service = TokenService(TEST_SECRET, default_ttl=timedelta(seconds=60), clock=lambda: NOW)
    token = service.issue(3)
    assert jwt.get_unverified_claims(token)["exp"] == NOW + 60
    assert service.verify(token) == 3

def test_other_secret_is_rejected(tokens):
    forged = TokenService("attacker-secret").issue(1, now=NOW)
    with pytest.raises(TokenBadSignature):
        tokens.verify(forged, now=NOW)

def test_tampered_payload_is_rejected(tokens):
    header, _, signature = tokens.issue(1, now=NOW).split(".")
    payload = base64.urlsafe_b64encode(
        json.dumps({"sub": "2", "iat": NOW, "exp": NOW + 10**6}).encode()
    ).rstrip(b"=").decode()
    with pytest.raises(TokenBadSignature):
        tokens.verify(".".join([header, payload, signature]), now=NOW)

def test_other_algorithm_is_rejected(tokens):
    token = jwt.encode({"sub": "1", "exp": NOW + 60}, TEST_SECRET, algorithm="HS512")
    with pytest.raises(TokenBadSignature):
        tokens.verify(token, now=NOW)

@pytest.mark.parametrize("token", ["", "abc", "a.b.c", "....", None])
def test_malformed_tokens(tokens, token):
    with pytest.raises(TokenMalformed):
        tokens.verify(token, now=NOW)

@pytest.mark.parametrize("claims", [
    {"exp": NOW + 60},
    {"sub": "abc", "exp": NOW + 60},
    {"sub": "1"},
    {"sub": "1", "exp": "tomorrow"},
])
def test_signed_but_incomplete_claims(tokens, claims):
    token = jwt.encode(claims, TEST_SECRET, algorithm="HS256")
    with pytest.raises(TokenMalformed):
        tokens.verify(token, now=NOW)

def test_rejects_bad_configuration():
    with pytest.raises(ValueError):
        TokenService("")
    with pytest.raises(ValueError):
        TokenService(TEST_SECRET, algorithm="RS256")
    with pytest.raises(ValueError):
        TokenService(TEST_SECRET).issue(1, ttl=timedelta(0))
