"""
Auth request validation.

This module implements input validation for every auth route.
Follows the "fail fast" principle - all validation happens before business logic.

Each route has a validate_* function returning a list of field errors and a
parse_* function that turns a valid body into its request dataclass (with
the email normalized) or raises ValidationError.

Validates:
- Required fields present and strings
- Email format using regex
- Password length
- Code format (6 digits)
- No unexpected fields present

Follows steering rules:
- Explicit over implicit
- Fail fast on invalid input
- Return detailed validation errors
"""

import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from auth_shared.errors import ValidationError
from auth_shared.types import (
    ForgotPasswordRequest,
    LoginRequest,
    ResendCodeRequest,
    ResetPasswordRequest,
    SignupRequest,
    VerifyRequest,
)


# Email regex pattern (RFC 5322 simplified, domain must contain a dot)
EMAIL_PATTERN = re.compile(
    r'^[a-zA-Z0-9.!#$%&\'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+$'
)

CODE_PATTERN = re.compile(r'^[0-9]{6}$')

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128
MAX_EMAIL_LENGTH = 254
MAX_NAME_LENGTH = 100

FieldErrors = List[Dict[str, str]]


def normalize_email(email: str) -> str:
    """Trim and lowercase an email address."""
    return email.strip().lower()


def validate_email_format(email: str) -> bool:
    """
    Validate email format using regex.

    Examples:
        >>> validate_email_format('user@example.com')
        True

        >>> validate_email_format('invalid-email')
        False
    """
    if not email or not isinstance(email, str):
        return False

    email = email.strip()
    return len(email) <= MAX_EMAIL_LENGTH and EMAIL_PATTERN.match(email) is not None


def _check_fields(
    request: Dict[str, Any],
    required: Iterable[str],
    optional: Iterable[str] = ()
) -> FieldErrors:
    errors: FieldErrors = []
    allowed: Set[str] = set(required) | set(optional)

    for field in sorted(set(request.keys()) - allowed):
        errors.append({'field': field, 'message': 'Unexpected field in request'})

    for field in required:
        if field not in request or request[field] is None:
            errors.append({'field': field, 'message': 'Field is required'})
        elif not isinstance(request[field], str):
            errors.append({'field': field, 'message': 'Field must be a string'})
        elif not request[field].strip():
            errors.append({'field': field, 'message': 'Field cannot be empty'})

    for field in optional:
        if request.get(field) is not None and not isinstance(request[field], str):
            errors.append({'field': field, 'message': 'Field must be a string'})

    return errors


def _has_text(request: Dict[str, Any], field: str) -> bool:
    value = request.get(field)
    return isinstance(value, str) and bool(value.strip())


def _check_email(request: Dict[str, Any], errors: FieldErrors) -> None:
    if _has_text(request, 'email') and not validate_email_format(request['email']):
        errors.append({'field': 'email', 'message': 'Invalid email format'})


def _check_password(request: Dict[str, Any], errors: FieldErrors) -> None:
    if not _has_text(request, 'password'):
        return
    length = len(request['password'])
    if length < MIN_PASSWORD_LENGTH:
        errors.append({
            'field': 'password',
            'message': f'Password must be at least {MIN_PASSWORD_LENGTH} characters long'
        })
    elif length > MAX_PASSWORD_LENGTH:
        errors.append({
            'field': 'password',
            'message': f'Password must be at most {MAX_PASSWORD_LENGTH} characters long'
        })


def _check_code(request: Dict[str, Any], errors: FieldErrors) -> None:
    if _has_text(request, 'code') and not CODE_PATTERN.match(request['code'].strip()):
        errors.append({'field': 'code', 'message': 'Code must be 6 digits'})


def validate_signup_request(request: Dict[str, Any]) -> FieldErrors:
    """
    Validate a signup request.

    Examples:
        >>> validate_signup_request({'email': 'a@example.com', 'password': 'longpass1'})
        []

        >>> validate_signup_request({'email': 'a@example.com', 'password': 'short'})
        [{'field': 'password', 'message': 'Password must be at least 8 characters long'}]
    """
    errors = _check_fields(request, ['email', 'password'], ['name'])
    _check_email(request, errors)
    _check_password(request, errors)

    name = request.get('name')
    if isinstance(name, str) and len(name.strip()) > MAX_NAME_LENGTH:
        errors.append({
            'field': 'name',
            'message': f'Name must be at most {MAX_NAME_LENGTH} characters long'
        })

    return errors


def validate_verify_request(request: Dict[str, Any]) -> FieldErrors:
    errors = _check_fields(request, ['email', 'code'])
    _check_email(request, errors)
    _check_code(request, errors)
    return errors


def validate_login_request(request: Dict[str, Any]) -> FieldErrors:
    """
    Validate a login request.

    Password length is not checked here: an account's password is whatever
    was accepted at signup, and a wrong one is reported as invalid credentials.
    """
    errors = _check_fields(request, ['email', 'password'])
    _check_email(request, errors)
    return errors


def validate_email_only_request(request: Dict[str, Any]) -> FieldErrors:
    errors = _check_fields(request, ['email'])
    _check_email(request, errors)
    return errors


def validate_reset_password_request(request: Dict[str, Any]) -> FieldErrors:
    errors = _check_fields(request, ['email', 'code', 'password'])
    _check_email(request, errors)
    _check_code(request, errors)
    _check_password(request, errors)
    return errors


def _parse(
    request: Any,
    validator: Callable[[Dict[str, Any]], FieldErrors],
    build: Callable[[Dict[str, Any]], Any]
) -> Any:
    if not isinstance(request, dict):
        raise ValidationError(
            'Invalid request data',
            {'errors': [{'field': 'body', 'message': 'Request body must be a JSON object'}]}
        )

    errors = validator(request)
    if errors:
        raise ValidationError('Invalid request data', {'errors': errors})

    return build(request)


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def parse_signup_request(request: Any) -> SignupRequest:
    return _parse(request, validate_signup_request, lambda body: SignupRequest(
        email=normalize_email(body['email']),
        password=body['password'],
        name=_optional_text(body.get('name'))
    ))


def parse_verify_request(request: Any) -> VerifyRequest:
    return _parse(request, validate_verify_request, lambda body: VerifyRequest(
        email=normalize_email(body['email']),
        code=body['code'].strip()
    ))


def parse_login_request(request: Any) -> LoginRequest:
    return _parse(request, validate_login_request, lambda body: LoginRequest(
        email=normalize_email(body['email']),
        password=body['password']
    ))


def parse_resend_code_request(request: Any) -> ResendCodeRequest:
    return _parse(request, validate_email_only_request, lambda body: ResendCodeRequest(
        email=normalize_email(body['email'])
    ))


def parse_forgot_password_request(request: Any) -> ForgotPasswordRequest:
    return _parse(request, validate_email_only_request, lambda body: ForgotPasswordRequest(
        email=normalize_email(body['email'])
    ))


def parse_reset_password_request(request: Any) -> ResetPasswordRequest:
    return _parse(request, validate_reset_password_request, lambda body: ResetPasswordRequest(
        email=normalize_email(body['email']),
        code=body['code'].strip(),
        password=body['password']
    ))
