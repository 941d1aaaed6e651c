"""
Storage layer for the personal notes service.

Two interchangeable variants implement the credential and note stores:
an in-memory, lock-protected one and a durable SQLAlchemy one.
"""
from .base import CredentialStore, NoteRecord, NoteStore, UserRecord
from .exceptions import DuplicateUsername, RecordNotFound, StorageFailure, StoreError, UnknownOwner
from .factory import open_stores

__all__ = [
    "CredentialStore",
    "NoteStore",
    "UserRecord",
    "NoteRecord",
    "StoreError",
    "DuplicateUsername",
    "RecordNotFound",
    "UnknownOwner",
    "StorageFailure",
    "open_stores",
]
