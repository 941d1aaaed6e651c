from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from .exceptions import RecordNotFound


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class UserRecord:
    """A registered account. The hash is kept out of repr so it never ends up in logs."""
    id: int
    username: str
    password_hash: str = field(repr=False)
    created_at: datetime


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class NoteRecord:
    """A note owned by exactly one user."""
    id: int
    title: str
    content: str
    owner_id: int
    created_at: datetime
    updated_at: datetime


def matches_query(note: NoteRecord, query: Optional[str]) -> bool:
    """Case-insensitive substring match on title or content."""
    if not query:
        return True
    needle = query.lower()
    return needle in note.title.lower() or needle in (note.content or "").lower()


# PUBLIC_INTERFACE
class CredentialStore(ABC):
    """Persists username -> password hash mappings with unique usernames."""

    @abstractmethod
    def create(self, username: str, password_hash: str) -> UserRecord:
        """Insert a user. Raises DuplicateUsername when the name is taken."""

    @abstractmethod
    def lookup(self, username: str) -> UserRecord:
        """Find a user by name. Raises RecordNotFound."""

    @abstractmethod
    def get(self, user_id: int) -> UserRecord:
        """Find a user by id. Raises RecordNotFound."""

    def exists(self, user_id: int) -> bool:
        try:
            self.get(user_id)
        except RecordNotFound:
            return False
        return True


# PUBLIC_INTERFACE
class NoteStore(ABC):
    """
    Owner-scoped note storage.

    get/update/delete raise RecordNotFound both for unknown ids and for ids
    owned by another user.
    """

    @abstractmethod
    def create(self, owner_id: int, title: str, content: str) -> NoteRecord:
        ...

    @abstractmethod
    def list(self, owner_id: int, query: Optional[str] = None, skip: int = 0,
             limit: Optional[int] = None) -> List[NoteRecord]:
        ...

    @abstractmethod
    def get(self, owner_id: int, note_id: int) -> NoteRecord:
        ...

    @abstractmethod
    def update(self, owner_id: int, note_id: int, title: Optional[str] = None,
               content: Optional[str] = None) -> NoteRecord:
        ...

    @abstractmethod
    def delete(self, owner_id: int, note_id: int) -> None:
        ...
