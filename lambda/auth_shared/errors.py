"""
Domain error classes for the TODO auth service.

These error classes provide explicit, typed exceptions that map cleanly to API responses.
All errors follow the principle of "fail fast" and provide clear error codes and messages.
"""

from typing import Dict, Any


class DomainError(Exception):
    """
    Base class for all domain errors.

    Domain errors are explicit business logic errors that should be mapped
    to appropriate HTTP responses by the handler layer.
    """

    status_code = 500

    def __init__(self, code: str, message: str, details: Dict[str, Any] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}


class ValidationError(DomainError):
    """
    Raised when input validation fails.

    Maps to HTTP 400 Bad Request.
    Details should contain field-level validation errors.
    """

    status_code = 400

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__('VALIDATION_ERROR', message, details or {})


class InvalidCodeError(DomainError):
    """
    Raised when a verification or reset code does not match, has expired,
    or was already consumed.

    Maps to HTTP 400 Bad Request.
    """

    status_code = 400

    def __init__(self, message: str = 'Invalid or expired verification code'):
        super().__init__('INVALID_CODE', message, {})


class AuthenticationError(DomainError):
    """
    Raised when authentication fails.

    Maps to HTTP 401 Unauthorized.
    """

    status_code = 401

    def __init__(self, message: str, code: str = 'AUTHENTICATION_ERROR'):
        super().__init__(code, message, {})


class InvalidCredentialsError(AuthenticationError):
    """
    Raised on login with an unknown email or a wrong password.

    Both cases share one message so responses do not reveal which
    emails are registered.
    """

    def __init__(self):
        super().__init__('Invalid email or password', 'INVALID_CREDENTIALS')


class NotVerifiedError(AuthenticationError):
    """Raised on login for an account that has not completed email verification."""

    def __init__(self):
        super().__init__('Please verify your email before logging in', 'NOT_VERIFIED')


class NotFoundError(DomainError):
    """
    Raised when a requested resource or route does not exist.

    Maps to HTTP 404 Not Found.
    """

    status_code = 404

    def __init__(self, message: str):
        super().__init__('NOT_FOUND', message, {})


class MethodNotAllowedError(DomainError):
    """Maps to HTTP 405 Method Not Allowed."""

    status_code = 405

    def __init__(self, method: str, path: str):
        super().__init__(
            'METHOD_NOT_ALLOWED',
            f"Method {method} is not allowed on {path}",
            {}
        )


class ConflictError(DomainError):
    """
    Raised when an operation conflicts with existing state.

    Maps to HTTP 409 Conflict.
    Examples: email already registered, signup already awaiting verification.
    """

    status_code = 409

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__('CONFLICT', message, details or {})
