"""
Auth API Lambda handler.

This handler is the single API entry point for the /auth routes. It resolves
the route from the API Gateway event (REST v1 or HTTP API v2 payloads),
answers CORS preflight, and dispatches to the auth service:

    POST /auth/signup            -> 201 {message}
    POST /auth/verify            -> 200 {message, user}
    POST /auth/login             -> 200 {token, user}
    POST /auth/resend-code       -> 200 {message}
    POST /auth/password/forgot   -> 200 {message}
    POST /auth/password/reset    -> 200 {message}
    OPTIONS on any of the above  -> 200, no body

Separation of concerns:
- Handler: Resolve route, parse body, map errors to HTTP responses
- Validation: Turn bodies into typed requests (auth_shared.validation)
- Service: Business logic (auth_shared.service)

Follows steering rules:
- Business logic in services, not handlers
- Fail fast on invalid input
- Configuration read once at startup
- Validate env vars on boot
- Log request lifecycle with correlation ID
"""

import base64
import binascii
import json
from typing import Any, Callable, Dict, Tuple

from auth_shared import validation
from auth_shared.config import load_config, metrics_enabled
from auth_shared.errors import (
    DomainError,
    MethodNotAllowedError,
    NotFoundError,
    ValidationError,
)
from auth_shared.logger import StructuredLogger, create_logger
from auth_shared.responses import (
    create_error_response,
    create_options_response,
    create_success_response,
)
from auth_shared.service import AuthService
from auth_shared.types import Route


REQUIRED_ENV_VARS = ['TABLE_NAME', 'JWT_SECRET_PARAMETER_NAME', 'SOURCE_EMAIL']

# Configuration loaded once at module initialization (cold start)
# This will fail fast if configuration is invalid
config = load_config(REQUIRED_ENV_VARS)

# Initialize service once at cold start
auth_service = AuthService.from_config(config)


RouteResult = Tuple[int, Dict[str, Any]]


def _signup(body: Any, logger: StructuredLogger) -> RouteResult:
    request = validation.parse_signup_request(body)
    user = auth_service.signup(request)
    logger.log_info('signup_pending', userId=user.id)
    return 201, {'message': 'Verification code sent to your email'}


def _verify(body: Any, logger: StructuredLogger) -> RouteResult:
    request = validation.parse_verify_request(body)
    user = auth_service.verify(request)
    logger.log_info('user_verified', userId=user.id)
    return 200, {
        'message': 'Email verified successfully',
        'user': user.public_view('id', 'email', 'name', 'status')
    }


def _login(body: Any, logger: StructuredLogger) -> RouteResult:
    request = validation.parse_login_request(body)
    result = auth_service.login(request)
    logger.log_info('login_succeeded', userId=result.user.id)
    return 200, {
        'token': result.token,
        'user': result.user.public_view('id', 'email', 'name', 'role')
    }


def _resend_code(body: Any, logger: StructuredLogger) -> RouteResult:
    request = validation.parse_resend_code_request(body)
    sent = auth_service.resend_code(request)
    logger.log_info('resend_code', codeSent=sent)
    return 200, {
        'message': 'If the account is awaiting verification, a new code has been sent'
    }


def _forgot_password(body: Any, logger: StructuredLogger) -> RouteResult:
    request = validation.parse_forgot_password_request(body)
    sent = auth_service.request_password_reset(request)
    logger.log_info('password_reset_requested', codeSent=sent)
    return 200, {
        'message': 'If the account exists, a password reset code has been sent'
    }


def _reset_password(body: Any, logger: StructuredLogger) -> RouteResult:
    request = validation.parse_reset_password_request(body)
    user = auth_service.reset_password(request)
    logger.log_info('password_reset', userId=user.id)
    return 200, {'message': 'Password has been reset'}


# path -> method -> action
ROUTES: Dict[str, Dict[str, Callable[[Any, StructuredLogger], RouteResult]]] = {
    '/auth/signup': {'POST': _signup},
    '/auth/verify': {'POST': _verify},
    '/auth/login': {'POST': _login},
    '/auth/resend-code': {'POST': _resend_code},
    '/auth/password/forgot': {'POST': _forgot_password},
    '/auth/password/reset': {'POST': _reset_password},
}


def resolve_route(event: Dict[str, Any]) -> Route:
    """
    Extract method and path from an API Gateway event.

    HTTP API (v2) events carry `routeKey` ("POST /auth/login") and
    `requestContext.http`; REST API (v1) events carry `httpMethod` and
    `resource`/`path`.
    """
    route_key = event.get('routeKey')
    if route_key and route_key != '$default' and ' ' in route_key:
        method, path = route_key.split(' ', 1)
    else:
        http = (event.get('requestContext') or {}).get('http') or {}
        method = http.get('method') or event.get('httpMethod') or ''
        path = event.get('resource') or ''
        if not path or '{' in path:
            path = event.get('rawPath') or event.get('path') or ''

    path = path.rstrip('/') or '/'
    return Route(method=method.upper(), path=path)


def _parse_body(event: Dict[str, Any]) -> Any:
    body = event.get('body')
    if body is None or body == '':
        return {}
    if not isinstance(body, str):
        return body

    try:
        if event.get('isBase64Encoded'):
            body = base64.b64decode(body).decode('utf-8')
        return json.loads(body)
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError):
        raise ValidationError(
            'Invalid JSON in request body',
            {'errors': [{'field': 'body', 'message': 'Request body must be valid JSON'}]}
        ) from None


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for the auth API.

    Request flow:
    1. Resolve route and create structured logger with correlation ID
    2. Answer OPTIONS preflight, reject unknown routes and methods
    3. Parse the JSON body and dispatch to the route action
    4. Map domain errors to HTTP responses
    5. Log request completion with latency and publish metrics

    Args:
        event: API Gateway Lambda proxy integration event
        context: Lambda context object

    Returns:
        API Gateway Lambda proxy integration response

    Response codes:
        200/201: Success
        400: Validation error, invalid or expired code
        401: Invalid credentials, unverified account
        404: Unknown route
        405: Method not allowed on route
        409: Email already registered or awaiting verification
        500: Internal error
    """
    route = resolve_route(event)
    logger = create_logger(
        event,
        operation='auth-api',
        metrics_enabled=metrics_enabled(config)
    )
    logger.log_request_start(path=route.path, method=route.method)

    try:
        methods = ROUTES.get(route.path)
        if methods is None:
            raise NotFoundError('Route not found')

        if route.method == 'OPTIONS':
            logger.log_request_complete(status_code=200)
            return create_options_response()

        action = methods.get(route.method)
        if action is None:
            raise MethodNotAllowedError(route.method, route.path)

        status_code, data = action(_parse_body(event), logger)

        logger.log_request_complete(status_code=status_code)
        return create_success_response(status_code, data)

    except ValidationError as error:
        logger.log_validation_error(errors=error.details.get('errors', []))
        return create_error_response(
            error.status_code,
            error.code,
            error.message,
            error.details
        )

    except DomainError as error:
        logger.log_domain_error(
            error_code=error.code,
            error_message=error.message,
            status_code=error.status_code
        )
        return create_error_response(
            error.status_code,
            error.code,
            error.message,
            error.details
        )

    except Exception as error:
        # Internal details are logged by type only and never returned
        logger.log_unexpected_error(error_type=type(error).__name__, path=route.path)
        return create_error_response(
            500,
            'INTERNAL_ERROR',
            'An unexpected error occurred'
        )

    finally:
        logger.publish_metrics()
