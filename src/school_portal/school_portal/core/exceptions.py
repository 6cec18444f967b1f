class DomainError(Exception):
    """Base exception for business rule violations.

    Every subclass carries a stable ``code`` the HTTP layer maps to a status.
    """

    code = "domain_error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "validation_error"


class NotFoundError(DomainError):
    """Raised when a batch or record does not exist."""

    code = "not_found"


class InvalidStateError(DomainError):
    """Raised when a transition is attempted from a non-pending state."""

    code = "invalid_state"


class StoreError(DomainError):
    """Raised on backend failures (constraint violation, connectivity)."""

    code = "store_error"


class AuthenticationError(DomainError):
    """Raised when the caller identity cannot be resolved."""

    code = "unauthenticated"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = "forbidden"
