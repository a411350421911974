"""
JSON log lines for the auth Lambda functions.

Each line is one JSON object on stdout, so CloudWatch Logs Insights can
filter by correlationId, event and errorCode.

Follows steering rules:
- Log request lifecycle with correlation ID
- Log errors with context (no sensitive data)

Never logged: passwords, password salts and hashes, codes, tokens, secrets.
"""

import json
import time
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from auth_shared.metrics import create_metrics_client


# Sensitive field names that should never be logged (compared lowercased)
SENSITIVE_FIELDS = {
    'password',
    'newpassword',
    'passwordhash',
    'passwordsalt',
    'salt',
    'hash',
    'code',
    'token',
    'secret',
    'apikey',
    'api_key',
    'authorization',
    'authorizationtoken',
    'credentials',
    'accesstoken',
    'access_token',
}


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def sanitize(data: Any) -> Any:
    """
    Redact sensitive fields from log data.

    Recursively replaces the value of any field whose name is sensitive
    with '[REDACTED]'.

    Args:
        data: Dictionary (or list of dictionaries) that may contain sensitive fields

    Returns:
        Sanitized copy of the data
    """
    if isinstance(data, list):
        return [sanitize(item) for item in data]
    if not isinstance(data, dict):
        return data

    sanitized = {}
    for key, value in data.items():
        if str(key).lower() in SENSITIVE_FIELDS:
            sanitized[key] = '[REDACTED]'
        else:
            sanitized[key] = sanitize(value)

    return sanitized


def log_event(event: str, correlation_id: Optional[str] = None, **fields: Any) -> None:
    """
    Write one structured log line to stdout (CloudWatch Logs).

    Usable outside a request, e.g. from a secret provider during cold start.
    """
    log_entry = {
        'timestamp': _timestamp(),
        'correlationId': correlation_id,
        'event': event,
        **sanitize(fields)
    }
    print(json.dumps(log_entry, default=str))


class StructuredLogger:
    """
    Per-request JSON logger bound to one correlation id.

    Every line carries the API Gateway request id so a signup, its code
    email and any failure can be followed across log lines. Lifecycle and
    error events feed the request's MetricsClient.

    Usage:
        logger = StructuredLogger(correlation_id='abc-123', operation='auth-login')
        logger.log_request_start(path='/auth/login', method='POST')
        logger.log_request_complete(status_code=200, userId='01J...')
        logger.publish_metrics()
    """

    def __init__(self, correlation_id: str, operation: str, metrics_enabled: bool = True):
        """
        Args:
            correlation_id: API Gateway request id ('unknown' outside API Gateway)
            operation: Metrics dimension (e.g., 'auth-signup')
            metrics_enabled: Publish CloudWatch metrics for this request
        """
        self.correlation_id = correlation_id
        self.operation = operation
        self.start_time = time.time()
        self.metrics = create_metrics_client(operation, enabled=metrics_enabled)

    def _latency_ms(self) -> int:
        return int((time.time() - self.start_time) * 1000)

    def _log(self, event: str, **kwargs: Any) -> None:
        log_event(event, correlation_id=self.correlation_id, **kwargs)

    def log_request_start(self, path: str, method: str, **fields: Any) -> None:
        """Record the route a request arrived on (never its body)."""
        self._log(
            'request_start',
            operation=self.operation,
            path=path,
            httpMethod=method,
            **fields
        )

    def log_request_complete(self, status_code: int, **fields: Any) -> None:
        """
        Record a successful response and count it.

        Args:
            status_code: Status returned to the client (200, 201)
            **fields: Identity fields such as userId; sensitive names are redacted
        """
        latency_ms = self._latency_ms()
        self._log('request_complete', statusCode=status_code, latencyMs=latency_ms, **fields)

        self.metrics.emit_request_count()
        self.metrics.emit_latency(latency_ms)

    def log_validation_error(self, errors: Any, **fields: Any) -> None:
        """Record rejected input. `errors` holds field names and messages only."""
        self._log('validation_error', errors=errors, latencyMs=self._latency_ms(), **fields)
        self.metrics.emit_error(error_code='VALIDATION_ERROR')

    def log_domain_error(
        self,
        error_code: str,
        error_message: str,
        status_code: int,
        **fields: Any
    ) -> None:
        """
        Record an expected failure: wrong password, unverified account,
        bad or expired code, email already registered.

        Args:
            error_code: Stable client-facing code (e.g., 'CONFLICT', 'INVALID_CODE')
            error_message: Message returned to the client
            status_code: Status returned to the client
        """
        latency_ms = self._latency_ms()
        self._log(
            'domain_error',
            errorCode=error_code,
            errorMessage=error_message,
            statusCode=status_code,
            latencyMs=latency_ms,
            **fields
        )

        self.metrics.emit_error(error_code=error_code)
        self.metrics.emit_latency(latency_ms)

    def log_unexpected_error(self, error_type: str, **fields: Any) -> None:
        """
        Record a system failure (store unavailable, SES rejection, secret
        retrieval). Only the exception class name is written because SDK
        messages can echo request parameters.
        """
        latency_ms = self._latency_ms()
        self._log('unexpected_error', errorType=error_type, latencyMs=latency_ms, **fields)

        self.metrics.emit_error(error_code='INTERNAL_ERROR')
        self.metrics.emit_latency(latency_ms)

    def log_info(self, message: str, **fields: Any) -> None:
        """Record a notable step, e.g. user created or code issued."""
        self._log('info', message=message, **fields)

    def publish_metrics(self) -> None:
        self.metrics.publish()


def create_logger(
    event: Dict[str, Any],
    operation: str,
    metrics_enabled: bool = True
) -> StructuredLogger:
    """Build a logger keyed on the event's requestContext.requestId."""
    request_context = event.get('requestContext') or {}
    correlation_id = request_context.get('requestId', 'unknown')
    return StructuredLogger(correlation_id, operation, metrics_enabled=metrics_enabled)
