import logging
from typing import Optional, Tuple

from .base import CredentialStore, NoteStore
from .db import create_db_engine, make_session_factory
from .init_db import init_db
from .memory import MemoryCredentialStore, MemoryNoteStore
from .sql import SqlCredentialStore, SqlNoteStore

logger = logging.getLogger(__name__)

BACKENDS = ("memory", "sql")


# PUBLIC_INTERFACE
def open_stores(backend: str = "memory", database_url: Optional[str] = None) -> Tuple[CredentialStore, NoteStore]:
    """
    Builds the credential and note stores for the selected backend.

    For "sql" the tables are created if missing.
    """
    if backend == "memory":
        users = MemoryCredentialStore()
        logger.info("Using in-memory storage")
        return users, MemoryNoteStore(users)
    if backend == "sql":
        engine = init_db(create_db_engine(database_url))
        session_factory = make_session_factory(engine)
        logger.info("Using SQL storage (%s)", engine.url.render_as_string(hide_password=True))
        return SqlCredentialStore(session_factory), SqlNoteStore(session_factory)
    raise ValueError(f"Unknown storage backend {backend!r}; expected one of {BACKENDS}.")
