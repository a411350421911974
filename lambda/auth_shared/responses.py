"""
Response helper functions for Lambda handlers.

These functions create consistent HTTP responses for API Gateway proxy
integrations. Every response carries a JSON content type and permissive
CORS headers so the browser frontend can call the API from any origin.
"""

import json
from typing import Dict, Any, Optional


CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'Content-Type,Authorization',
    'Access-Control-Allow-Methods': 'GET,POST,PUT,DELETE,OPTIONS',
}


def _headers() -> Dict[str, str]:
    return {'Content-Type': 'application/json', **CORS_HEADERS}


def create_success_response(status_code: int, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a successful HTTP response.

    Args:
        status_code: HTTP status code (200, 201, etc.)
        data: Response payload to be JSON serialized

    Returns:
        Lambda proxy integration response object
    """
    return {
        'statusCode': status_code,
        'headers': _headers(),
        'body': json.dumps(data)
    }


def create_options_response() -> Dict[str, Any]:
    """CORS preflight response: 200 with headers and no body."""
    return {
        'statusCode': 200,
        'headers': _headers(),
        'body': ''
    }


def create_error_response(
    status_code: int,
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Create an error HTTP response with consistent structure.

    All error responses follow the format:
    {
        "error": "Human-readable message",
        "code": "ERROR_CODE",
        "details": { ... }        (only when there are details)
    }

    Args:
        status_code: HTTP status code (400, 401, 404, 409, 500, etc.)
        code: Error code string (VALIDATION_ERROR, CONFLICT, etc.)
        message: Human-readable error message
        details: Additional error context (field errors, conflict reason, etc.)

    Returns:
        Lambda proxy integration response object
    """
    body: Dict[str, Any] = {'error': message, 'code': code}
    if details:
        body['details'] = details

    return {
        'statusCode': status_code,
        'headers': _headers(),
        'body': json.dumps(body)
    }
