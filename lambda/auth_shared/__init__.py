"""Shared utilities for the TODO auth service."""

from .types import (
    User,
    UserStatus,
    UserRole,
    PasswordHash,
    VerificationCode,
    TokenClaims,
    LoginResult,
    SignupRequest,
    VerifyRequest,
    LoginRequest,
    ResendCodeRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
)

from .errors import (
    DomainError,
    ValidationError,
    InvalidCodeError,
    AuthenticationError,
    InvalidCredentialsError,
    NotVerifiedError,
    NotFoundError,
    MethodNotAllowedError,
    ConflictError,
)

from .responses import (
    create_success_response,
    create_error_response,
    create_options_response,
)

__all__ = [
    # Types
    'User',
    'UserStatus',
    'UserRole',
    'PasswordHash',
    'VerificationCode',
    'TokenClaims',
    'LoginResult',
    'SignupRequest',
    'VerifyRequest',
    'LoginRequest',
    'ResendCodeRequest',
    'ForgotPasswordRequest',
    'ResetPasswordRequest',
    # Errors
    'DomainError',
    'ValidationError',
    'InvalidCodeError',
    'AuthenticationError',
    'InvalidCredentialsError',
    'NotVerifiedError',
    'NotFoundError',
    'MethodNotAllowedError',
    'ConflictError',
    # Responses
    'create_success_response',
    'create_error_response',
    'create_options_response',
]
