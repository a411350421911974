"""
Bearer token authorizer Lambda handler.

API Gateway calls this function before every protected todo route. It
verifies the `Authorization: Bearer <token>` credential and returns an IAM
policy. On success the policy context carries the caller identity
(userId, email, role), which downstream handlers read from
`requestContext.authorizer` instead of trusting the request body.

Any failure (missing header, bad signature, expired token, secret retrieval
error) yields a Deny policy.

Follows steering rules:
- Configuration read once at startup
- Validate env vars on boot
- Log errors with context (no sensitive data)
"""

from typing import Any, Dict, Optional

from auth_shared.config import load_config, metrics_enabled
from auth_shared.errors import AuthenticationError
from auth_shared.logger import create_logger
from auth_shared.service import build_token_service


REQUIRED_ENV_VARS = ['JWT_SECRET_PARAMETER_NAME']

config = load_config(REQUIRED_ENV_VARS)

token_service = build_token_service(config)


def extract_bearer_token(event: Dict[str, Any]) -> Optional[str]:
    """
    Read the bearer token from a TOKEN or REQUEST authorizer event.

    Returns:
        The raw token, or None when no bearer credential is present
    """
    raw = event.get('authorizationToken')
    if not raw:
        headers = event.get('headers') or {}
        raw = next(
            (value for key, value in headers.items() if key.lower() == 'authorization'),
            None
        )
    if not raw or not isinstance(raw, str):
        return None

    scheme, _, token = raw.strip().partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


def generate_policy(
    principal_id: str,
    effect: str,
    resource: str,
    context: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    policy: Dict[str, Any] = {
        'principalId': principal_id,
        'policyDocument': {
            'Version': '2012-10-17',
            'Statement': [
                {
                    'Action': 'execute-api:Invoke',
                    'Effect': effect,
                    'Resource': resource
                }
            ]
        }
    }
    if context:
        policy['context'] = context
    return policy


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda authorizer entry point.

    Args:
        event: API Gateway TOKEN or REQUEST authorizer event
        context: Lambda context object

    Returns:
        IAM policy allowing or denying execute-api:Invoke on the method ARN
    """
    logger = create_logger(
        event,
        operation='auth-authorizer',
        metrics_enabled=metrics_enabled(config)
    )
    method_arn = event.get('methodArn') or event.get('routeArn') or '*'
    logger.log_request_start(path=method_arn, method='AUTHORIZE')

    try:
        token = extract_bearer_token(event)
        if token is None:
            raise AuthenticationError('Missing bearer token')

        claims = token_service.verify(token)

        logger.log_request_complete(status_code=200, userId=claims.sub)
        return generate_policy(
            claims.sub,
            'Allow',
            method_arn,
            {
                'userId': claims.sub,
                'email': claims.email,
                'role': claims.role
            }
        )

    except AuthenticationError as error:
        logger.log_domain_error(
            error_code=error.code,
            error_message=error.message,
            status_code=401
        )
        return generate_policy('unauthorized', 'Deny', method_arn)

    except Exception as error:
        logger.log_unexpected_error(error_type=type(error).__name__)
        return generate_policy('unauthorized', 'Deny', method_arn)

    finally:
        logger.publish_metrics()
