"""
Database initialization/migration script.

Run this script to create all required tables in the database
named by DATABASE_URL.
"""
from typing import Optional

from sqlalchemy.engine import Engine

from notes_database.db import create_db_engine
from notes_database.models import Base

# PUBLIC_INTERFACE
def init_db(engine: Optional[Engine] = None) -> Engine:
    """Initializes the database by creating all tables if they do not exist."""
    engine = engine or create_db_engine()
    Base.metadata.create_all(bind=engine)
    return engine

if __name__ == "__main__":
    init_db()
    print("Database tables created successfully.")
