"""Domain error taxonomy surfaced as HTTP responses."""


class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Raised when a required field is missing or malformed."""

    status_code = 400


class UnauthorizedError(DomainError):
    """Raised when the principal is unknown or lacks the required role."""

    status_code = 401


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    status_code = 404


class ConflictError(DomainError):
    """Raised on duplicate check-ins, open breaks and uniqueness violations."""

    status_code = 409
