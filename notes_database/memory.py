"""
In-memory stores.

Each store guards its mappings with a single threading.Lock. Critical sections
only touch the dicts; records are frozen dataclasses, so what leaves the lock
is already a safe copy.
"""
import itertools
import threading
from dataclasses import replace
from typing import Dict, List, Optional

from .base import CredentialStore, NoteRecord, NoteStore, UserRecord, matches_query, utcnow
from .exceptions import DuplicateUsername, RecordNotFound, UnknownOwner


# PUBLIC_INTERFACE
class MemoryCredentialStore(CredentialStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._by_name: Dict[str, UserRecord] = {}
        self._by_id: Dict[int, UserRecord] = {}

    def create(self, username: str, password_hash: str) -> UserRecord:
        created_at = utcnow()
        with self._lock:
            if username in self._by_name:
                raise DuplicateUsername(username)
            user = UserRecord(
                id=next(self._ids),
                username=username,
                password_hash=password_hash,
                created_at=created_at,
            )
            self._by_name[username] = user
            self._by_id[user.id] = user
        return user

    def lookup(self, username: str) -> UserRecord:
        with self._lock:
            user = self._by_name.get(username)
        if user is None:
            raise RecordNotFound("user", username)
        return user

    def get(self, user_id: int) -> UserRecord:
        with self._lock:
            user = self._by_id.get(user_id)
        if user is None:
            raise RecordNotFound("user", user_id)
        return user


# PUBLIC_INTERFACE
class MemoryNoteStore(NoteStore):
    """Notes keyed by id. Owner existence is checked against the given credential store."""

    def __init__(self, users: CredentialStore):
        self._users = users
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._notes: Dict[int, NoteRecord] = {}

    def create(self, owner_id: int, title: str, content: str) -> NoteRecord:
        # Users are never deleted, so checking outside the lock is safe.
        if not self._users.exists(owner_id):
            raise UnknownOwner(owner_id)
        now = utcnow()
        with self._lock:
            note = NoteRecord(
                id=next(self._ids),
                title=title,
                content=content,
                owner_id=owner_id,
                created_at=now,
                updated_at=now,
            )
            self._notes[note.id] = note
        return note

    def list(self, owner_id: int, query: Optional[str] = None, skip: int = 0,
             limit: Optional[int] = None) -> List[NoteRecord]:
        with self._lock:
            owned = [n for n in self._notes.values() if n.owner_id == owner_id]
        found = [n for n in owned if matches_query(n, query)]
        found.sort(key=lambda n: (n.updated_at, n.id), reverse=True)
        end = None if limit is None else skip + limit
        return found[skip:end]

    def _owned(self, owner_id: int, note_id: int) -> NoteRecord:
        # caller holds the lock
        note = self._notes.get(note_id)
        if note is None:
            raise RecordNotFound("note", note_id)
        if note.owner_id != owner_id:
            raise RecordNotFound("note", note_id, foreign_owner=True)
        return note

    def get(self, owner_id: int, note_id: int) -> NoteRecord:
        with self._lock:
            return self._owned(owner_id, note_id)

    def update(self, owner_id: int, note_id: int, title: Optional[str] = None,
               content: Optional[str] = None) -> NoteRecord:
        now = utcnow()
        with self._lock:
            note = self._owned(owner_id, note_id)
            note = replace(
                note,
                title=note.title if title is None else title,
                content=note.content if content is None else content,
                updated_at=now,
            )
            self._notes[note_id] = note
        return note

    def delete(self, owner_id: int, note_id: int) -> None:
        with self._lock:
            self._owned(owner_id, note_id)
            del self._notes[note_id]
