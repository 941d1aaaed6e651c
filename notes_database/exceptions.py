"""Errors raised by the credential and note stores."""
from typing import Any


class StoreError(Exception):
    """Base class for every store failure."""


class DuplicateUsername(StoreError):
    def __init__(self, username: str):
        super().__init__(f"username already registered: {username!r}")
        self.username = username


class RecordNotFound(StoreError):
    """
    Raised when a record does not exist or is not visible to the caller.

    `foreign_owner` is set when a note exists but belongs to somebody else.
    It is meant for internal logging only.
    """

    def __init__(self, entity: str, key: Any, foreign_owner: bool = False):
        super().__init__(f"{entity} not found: {key!r}")
        self.entity = entity
        self.key = key
        self.foreign_owner = foreign_owner


class UnknownOwner(StoreError):
    def __init__(self, owner_id: int):
        super().__init__(f"owner does not exist: {owner_id!r}")
        self.owner_id = owner_id


class StorageFailure(StoreError):
    """The backing engine failed; the original error is chained as __cause__."""
