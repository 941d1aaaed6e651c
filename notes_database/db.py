import os
import threading
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# PUBLIC_INTERFACE
def get_database_url():
    """
    Retrieves the database URL from the environment variable DATABASE_URL.
    """
    load_dotenv()
    db_url = os.getenv("DATABASE_URL")
    if not db_url:
        raise ValueError("DATABASE_URL environment variable not set.")
    return db_url

def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

# PUBLIC_INTERFACE
def create_db_engine(url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Builds an engine for the given URL (DATABASE_URL when omitted).

    SQLite connections get foreign key enforcement; in-memory SQLite shares one
    connection across threads so every session sees the same database.
    """
    url = url or get_database_url()
    kwargs = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    engine = create_engine(url, future=True, echo=echo, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine

# PUBLIC_INTERFACE
def make_session_factory(engine: Engine) -> sessionmaker:
    """
    Session factory for the engine.

    A StaticPool hands the same DBAPI connection to every session, so such
    factories carry a lock in `info["connection_lock"]` that stores hold for
    the whole session.
    """
    info = {}
    if isinstance(engine.pool, StaticPool):
        info["connection_lock"] = threading.Lock()
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine, info=info)
