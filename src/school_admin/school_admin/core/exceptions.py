class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""


class ConflictError(DomainError):
    """Raised when a write would break a uniqueness rule."""


class AuthenticationError(DomainError):
    """Raised when login credentials or tokens are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class DuplicateKeyError(Exception):
    """Store-level unique key violation.

    `key` is the name of the violated index, so callers can tell an invoice
    collision (retry) from a duplicate billing period (skip).
    """

    def __init__(self, key: str, message: str = ""):
        super().__init__(message or f"Duplicate entry for key {key!r}")
        self.key = key
