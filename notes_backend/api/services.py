"""
Use cases behind the HTTP routes.

Services own the translation from store exceptions to the public error
taxonomy, so routes never see storage details.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from notes_database import (
    CredentialStore,
    DuplicateUsername,
    NoteRecord,
    NoteStore,
    RecordNotFound,
    StorageFailure,
    UnknownOwner,
    UserRecord,
)

from .errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from .gate import AuthenticatedIdentity
from .security import PasswordHasher, TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedToken:
    access_token: str
    expires_in: int
    token_type: str = "bearer"


# PUBLIC_INTERFACE
class AuthService:
    """Signup, login and account lookups."""

    def __init__(self, credentials: CredentialStore, hasher: PasswordHasher, tokens: TokenService):
        self._credentials = credentials
        self._hasher = hasher
        self._tokens = tokens

    def signup(self, username: str, password: str) -> UserRecord:
        username = (username or "").strip()
        if not username:
            raise ValidationError("Username must not be empty.")
        # hash before touching the store so no lock is held during bcrypt
        digest = self._hasher.hash(password)
        try:
            user = self._credentials.create(username, digest)
        except DuplicateUsername as exc:
            logger.info("Signup rejected: username %r already taken", username)
            raise ConflictError(reason=str(exc)) from exc
        except StorageFailure as exc:
            raise StorageError(reason="could not create user") from exc
        logger.info("User %s registered as %r", user.id, user.username)
        return user

    def login(self, username: str, password: str) -> IssuedToken:
        username = (username or "").strip()
        try:
            user = self._credentials.lookup(username)
        except RecordNotFound as exc:
            self._hasher.dummy_verify()
            logger.info("Login failed: unknown username %r", username)
            raise AuthenticationError(reason="unknown username") from exc
        except StorageFailure as exc:
            raise StorageError(reason="could not look up user") from exc
        if not self._hasher.verify(password, user.password_hash):
            logger.info("Login failed: wrong password for user %s", user.id)
            raise AuthenticationError(reason="wrong password")
        token = self._tokens.issue(user.id)
        return IssuedToken(
            access_token=token,
            expires_in=int(self._tokens.default_ttl.total_seconds()),
        )

    def profile(self, identity: AuthenticatedIdentity) -> UserRecord:
        try:
            return self._credentials.get(identity.user_id)
        except RecordNotFound as exc:
            raise AuthorizationError(reason="token subject does not exist") from exc
        except StorageFailure as exc:
            raise StorageError(reason="could not load user") from exc

    def user_exists(self, user_id: int) -> bool:
        try:
            return self._credentials.exists(user_id)
        except StorageFailure as exc:
            raise StorageError(reason="could not load user") from exc


# PUBLIC_INTERFACE
class NoteService:
    """Owner-scoped note operations for an authenticated identity."""

    def __init__(self, notes: NoteStore):
        self._notes = notes

    def _not_found(self, identity: AuthenticatedIdentity, exc: RecordNotFound) -> NotFoundError:
        if exc.foreign_owner:
            logger.warning("User %s tried to access note %s owned by another user", identity.user_id, exc.key)
        return NotFoundError(reason=str(exc))

    def create(self, identity: AuthenticatedIdentity, title: str, content: str = "") -> NoteRecord:
        try:
            return self._notes.create(identity.user_id, title, content or "")
        except UnknownOwner as exc:
            raise AuthorizationError(reason=str(exc)) from exc
        except StorageFailure as exc:
            raise StorageError(reason="could not create note") from exc

    def list(self, identity: AuthenticatedIdentity, query: Optional[str] = None,
             skip: int = 0, limit: Optional[int] = None) -> List[NoteRecord]:
        try:
            return self._notes.list(identity.user_id, query=query, skip=skip, limit=limit)
        except StorageFailure as exc:
            raise StorageError(reason="could not list notes") from exc

    def get(self, identity: AuthenticatedIdentity, note_id: int) -> NoteRecord:
        try:
            return self._notes.get(identity.user_id, note_id)
        except RecordNotFound as exc:
            raise self._not_found(identity, exc) from exc
        except StorageFailure as exc:
            raise StorageError(reason="could not load note") from exc

    def update(self, identity: AuthenticatedIdentity, note_id: int,
               title: Optional[str] = None, content: Optional[str] = None) -> NoteRecord:
        try:
            return self._notes.update(identity.user_id, note_id, title=title, content=content)
        except RecordNotFound as exc:
            raise self._not_found(identity, exc) from exc
        except StorageFailure as exc:
            raise StorageError(reason="could not update note") from exc

    def delete(self, identity: AuthenticatedIdentity, note_id: int) -> None:
        try:
            self._notes.delete(identity.user_id, note_id)
        except RecordNotFound as exc:
            raise self._not_found(identity, exc) from exc
        except StorageFailure as exc:
            raise StorageError(reason="could not delete note") from exc
