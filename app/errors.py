"""Credential error taxonomy.

Core operations report failures as an ``ErrorKind`` on their result object.
The exception classes exist for the store's constraint violations and for
callers that would rather raise than branch (see ``AuthResult.raise_for_error``).
"""

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    AUTHENTICATION = "authentication"


class CredentialError(Exception):
    """Base class for recoverable credential failures."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(CredentialError):
    """Malformed or missing input."""

    kind = ErrorKind.VALIDATION


class ConflictError(CredentialError):
    """An account with this email already exists."""

    kind = ErrorKind.CONFLICT


class NotFoundError(CredentialError):
    """No matching account or token, or the token has expired."""

    kind = ErrorKind.NOT_FOUND


class AuthenticationError(CredentialError):
    """Credentials did not match."""

    kind = ErrorKind.AUTHENTICATION


ERROR_CLASSES: dict[ErrorKind, type[CredentialError]] = {
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.CONFLICT: ConflictError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.AUTHENTICATION: AuthenticationError,
}
