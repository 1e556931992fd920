"""
Error taxonomy shared by the store, the identity provider and the handlers.

Handlers recover from `ConstraintViolation` and `AuthFailure` (flash + redirect).
`RecordNotFound` becomes a 404 page; everything else reaches the 500 handler.
"""
from __future__ import annotations


class StoreError(RuntimeError):
    """Base class for failures raised by the entity store."""


class RecordNotFound(StoreError):
    def __init__(self, collection: str, record_id: object):
        super().__init__(f"{collection} {record_id!r} not found")
        self.collection = collection
        self.record_id = record_id


class ConstraintViolation(StoreError):
    """A write was rejected by a store-level constraint (e.g. a duplicate unique field)."""

    def __init__(self, collection: str, message: str, duplicate: bool = True):
        super().__init__(message)
        self.collection = collection
        self.message = message
        # False when the store rejected a value itself (out of range, wrong type).
        self.duplicate = duplicate


class StoreUnavailable(StoreError):
    """The database could not be reached; the request fails with a 500."""


class AuthFailure(Exception):
    """Invalid credentials. Deliberately says nothing about which part was wrong."""

    def __init__(self, message: str = "Failed to login."):
        super().__init__(message)
        self.message = message
