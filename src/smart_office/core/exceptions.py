from __future__ import annotations

from typing import Sequence


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""


class ConflictError(DomainError):
    """Raised when a request collides with existing state."""


class BookingConflictError(ConflictError):
    def __init__(self, message: str, conflicts: Sequence = ()):
        super().__init__(message)
        self.conflicts = tuple(conflicts)


class DuplicateRecordError(ConflictError):
    """Unique key violation, e.g. a second attendance record for the same day."""


class QuotaExceededError(ConflictError):
    def __init__(self, message: str, *, used: int, maximum: int):
        super().__init__(message)
        self.used = used
        self.maximum = maximum


class StoreUnavailable(Exception):
    """Transient failure talking to a store (timeout, lost connection).

    Not a DomainError: callers should offer "try again" rather than "not allowed".
    """
