"""
Password hashing and signed access tokens.

Passwords are hashed with bcrypt through passlib; the salt and cost live in
the digest. Tokens are HMAC-signed JWTs (python-jose) carrying the user id and
an expiry; nothing about them is stored server side.
"""
import json
import logging
import time
from datetime import timedelta
from typing import Callable, Optional

from jose import jws, jwt
from jose.exceptions import JWSError
from passlib.context import CryptContext
from passlib.exc import PasswordValueError

from .config import HMAC_ALGORITHMS
from .errors import InternalError, ValidationError

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a secret
MAX_PASSWORD_BYTES = 72


def password_problem(plaintext: str) -> Optional[str]:
    """Returns why a password cannot be hashed, or None when it is acceptable."""
    if not plaintext:
        return "Password must not be empty."
    if "\x00" in plaintext:
        return "Password must not contain NUL characters."
    if len(plaintext.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return f"Password must be at most {MAX_PASSWORD_BYTES} bytes."
    return None


# PUBLIC_INTERFACE
class PasswordHasher:
    """bcrypt hashing with constant-time verification."""

    def __init__(self, rounds: int = 12):
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds,
                                     bcrypt__truncate_error=True)

    def hash(self, plaintext: str) -> str:
        problem = password_problem(plaintext)
        if problem:
            raise ValidationError(problem)
        try:
            return self._context.hash(plaintext)
        except PasswordValueError as exc:
            raise ValidationError("Password is not acceptable.") from exc
        except (ValueError, TypeError, MemoryError) as exc:
            # never include the exception text, it may echo the input
            logger.error("Password hashing failed (%s)", type(exc).__name__)
            raise InternalError(reason="password hashing failed") from exc

    def verify(self, plaintext: str, digest: str) -> bool:
        if not digest or password_problem(plaintext):
            self.dummy_verify()
            return False
        try:
            return self._context.verify(plaintext, digest)
        except ValueError:
            logger.warning("Stored password hash could not be parsed")
            return False

    def dummy_verify(self) -> None:
        """Spend the time of a real verification without checking anything."""
        self._context.dummy_verify()


class TokenError(Exception):
    reason = "invalid token"

    def __str__(self):
        return self.reason


class TokenMalformed(TokenError):
    reason = "malformed token"


class TokenBadSignature(TokenError):
    reason = "bad token signature"


class TokenExpired(TokenError):
    reason = "expired token"


# PUBLIC_INTERFACE
class TokenService:
    """
    Issues and verifies access tokens.

    `clock` returns the current Unix time in seconds; both `issue` and `verify`
    also take an explicit `now` so expiry can be checked at a given instant.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256",
                 default_ttl: timedelta = timedelta(hours=1),
                 clock: Callable[[], float] = time.time):
        if not secret_key:
            raise ValueError("A signing secret is required.")
        if algorithm not in HMAC_ALGORITHMS:
            raise ValueError(f"Unsupported token algorithm {algorithm!r}.")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.default_ttl = default_ttl
        self._clock = clock

    def issue(self, user_id: int, ttl: Optional[timedelta] = None, now: Optional[float] = None) -> str:
        ttl = self.default_ttl if ttl is None else ttl
        ttl_seconds = int(ttl.total_seconds())
        if ttl_seconds <= 0:
            raise ValueError("Token time-to-live must be positive.")
        issued_at = int(self._clock() if now is None else now)
        claims = {
            "sub": str(user_id),
            "iat": issued_at,
            "exp": issued_at + ttl_seconds,
        }
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str, now: Optional[float] = None) -> int:
        """Returns the user id, or raises TokenMalformed/TokenBadSignature/TokenExpired."""
        if not isinstance(token, str) or not token:
            raise TokenMalformed()
        try:
            jws.get_unverified_header(token)
        except JWSError as exc:
            raise TokenMalformed() from exc
        try:
            payload = jws.verify(token, self._secret_key, algorithms=[self._algorithm])
        except JWSError as exc:
            raise TokenBadSignature() from exc

        try:
            claims = json.loads(payload)
        except ValueError as exc:
            raise TokenMalformed() from exc
        if not isinstance(claims, dict):
            raise TokenMalformed()
        expires_at = claims.get("exp")
        if not isinstance(expires_at, int) or isinstance(expires_at, bool):
            raise TokenMalformed()
        try:
            user_id = int(claims.get("sub"))
        except (TypeError, ValueError) as exc:
            raise TokenMalformed() from exc

        current = self._clock() if now is None else now
        if current >= expires_at:
            raise TokenExpired()
        return user_id
