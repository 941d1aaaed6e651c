"""
SQLAlchemy-backed stores.

A short-lived session is opened per operation. Concurrency control is left to
the database: the UNIQUE constraint on users.username makes signup atomic and
the foreign key on notes.owner_id keeps note owners valid. When the engine
shares a single connection (in-memory SQLite) sessions are serialized on the
lock the session factory carries.
"""
import logging
from contextlib import contextmanager, nullcontext
from datetime import datetime, timezone
from typing import Iterator, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .base import CredentialStore, NoteRecord, NoteStore, UserRecord, utcnow
from .exceptions import DuplicateUsername, RecordNotFound, StorageFailure, UnknownOwner
from .models import Note, User

logger = logging.getLogger(__name__)


def _aware(value: datetime) -> datetime:
    # SQLite drops the offset; stored values are always UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _like_pattern(query: str) -> str:
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _user_record(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        username=user.username,
        password_hash=user.password_hash,
        created_at=_aware(user.created_at),
    )


def _note_record(note: Note) -> NoteRecord:
    return NoteRecord(
        id=note.id,
        title=note.title,
        content=note.content,
        owner_id=note.owner_id,
        created_at=_aware(note.created_at),
        updated_at=_aware(note.updated_at),
    )


class _SqlStore:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._connection_lock = session_factory.kw.get("info", {}).get("connection_lock")

    @contextmanager
    def _session(self) -> Iterator[Session]:
        with self._connection_lock or nullcontext():
            session = self._session_factory()
            try:
                yield session
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("Database operation failed")
                raise StorageFailure("database operation failed") from exc
            finally:
                session.close()


# PUBLIC_INTERFACE
class SqlCredentialStore(_SqlStore, CredentialStore):
    def create(self, username: str, password_hash: str) -> UserRecord:
        with self._session() as db:
            user = User(username=username, password_hash=password_hash)
            db.add(user)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise DuplicateUsername(username) from exc
            db.refresh(user)
            return _user_record(user)

    def lookup(self, username: str) -> UserRecord:
        with self._session() as db:
            user = db.query(User).filter(User.username == username).first()
            if user is None:
                raise RecordNotFound("user", username)
            return _user_record(user)

    def get(self, user_id: int) -> UserRecord:
        with self._session() as db:
            user = db.get(User, user_id)
            if user is None:
                raise RecordNotFound("user", user_id)
            return _user_record(user)


# PUBLIC_INTERFACE
class SqlNoteStore(_SqlStore, NoteStore):
    def _owned(self, db: Session, owner_id: int, note_id: int) -> Note:
        note = db.get(Note, note_id)
        if note is None:
            raise RecordNotFound("note", note_id)
        if note.owner_id != owner_id:
            raise RecordNotFound("note", note_id, foreign_owner=True)
        return note

    def create(self, owner_id: int, title: str, content: str) -> NoteRecord:
        with self._session() as db:
            if db.get(User, owner_id) is None:
                raise UnknownOwner(owner_id)
            note = Note(title=title, content=content, owner_id=owner_id)
            db.add(note)
            db.commit()
            db.refresh(note)
            return _note_record(note)

    def list(self, owner_id: int, query: Optional[str] = None, skip: int = 0,
             limit: Optional[int] = None) -> List[NoteRecord]:
        with self._session() as db:
            q = db.query(Note).filter(Note.owner_id == owner_id)
            if query:
                search = _like_pattern(query)
                q = q.filter(
                    (Note.title.ilike(search, escape="\\")) | (Note.content.ilike(search, escape="\\"))
                )
            q = q.order_by(Note.updated_at.desc(), Note.id.desc()).offset(skip)
            if limit is not None:
                q = q.limit(limit)
            return [_note_record(n) for n in q.all()]

    def get(self, owner_id: int, note_id: int) -> NoteRecord:
        with self._session() as db:
            return _note_record(self._owned(db, owner_id, note_id))

    def update(self, owner_id: int, note_id: int, title: Optional[str] = None,
               content: Optional[str] = None) -> NoteRecord:
        with self._session() as db:
            note = self._owned(db, owner_id, note_id)
            if title is not None:
                note.title = title
            if content is not None:
                note.content = content
            note.updated_at = utcnow()
            db.commit()
            db.refresh(note)
            return _note_record(note)

    def delete(self, owner_id: int, note_id: int) -> None:
        with self._session() as db:
            db.delete(self._owned(db, owner_id, note_id))
            db.commit()
