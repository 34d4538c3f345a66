"""Typed domain errors shared by the entity services and the resolver.

Each error carries a stable ``kind`` token and the HTTP status the API
layer answers with. Messages are written for API callers; persistence
details never go into them.
"""
from typing import Optional


class DomainError(Exception):
    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class ValidationError(DomainError):
    """Malformed input or a violated invariant such as start >= end."""

    kind = "validation_error"
    status_code = 400


class NotFoundError(DomainError):
    kind = "not_found"
    status_code = 404


class ConflictError(DomainError):
    """Uniqueness violation or a delete that would orphan dependents."""

    kind = "conflict"
    status_code = 409


class CancelledError(DomainError):
    """The caller's request deadline passed before the operation completed."""

    kind = "cancelled"
    status_code = 408


class InternalError(DomainError):
    kind = "internal_error"
    status_code = 500
