"""
Environment configuration for the auth Lambda functions.

Configuration is read once at cold start. Missing required variables fail
the function at boot instead of on the first request.

Follows steering rules:
- Read once at startup, validate env vars on boot
- Explicit over implicit
"""

import os
from typing import Dict, Iterable, Mapping, Optional


# Optional variables and their defaults
DEFAULTS = {
    'ENVIRONMENT': 'dev',
    'TOKEN_TTL_HOURS': '24',
    'SECRET_CACHE_TTL_SECONDS': '300',
    'METRICS_ENABLED': 'true',
}

PRODUCTION_ENVIRONMENTS = {'prod', 'production'}


def load_config(
    required_vars: Iterable[str],
    environ: Optional[Mapping[str, str]] = None
) -> Dict[str, str]:
    """
    Load and validate environment variables.

    Keys are converted to snake_case for internal use
    (TABLE_NAME -> table_name).

    Args:
        required_vars: Variables that must be present and non-empty
        environ: Source mapping (defaults to os.environ)

    Returns:
        Configuration dictionary including defaults for optional variables

    Raises:
        ValueError: If any required environment variable is missing
    """
    environ = os.environ if environ is None else environ
    config = {}
    missing_vars = []

    for var in required_vars:
        value = environ.get(var)
        if not value:
            missing_vars.append(var)
        else:
            config[var.lower()] = value

    if missing_vars:
        raise ValueError(
            f"Missing required environment variables: {', '.join(missing_vars)}"
        )

    for var, default in DEFAULTS.items():
        config[var.lower()] = environ.get(var) or default

    # Fail fast on malformed numbers too
    for var in ('TOKEN_TTL_HOURS', 'SECRET_CACHE_TTL_SECONDS'):
        try:
            if int(config[var.lower()]) <= 0:
                raise ValueError
        except ValueError:
            raise ValueError(f"{var} must be a positive integer") from None

    return config


def is_production(config: Mapping[str, str]) -> bool:
    return config.get('environment', '').lower() in PRODUCTION_ENVIRONMENTS


def metrics_enabled(config: Mapping[str, str]) -> bool:
    return config.get('metrics_enabled', 'true').lower() not in ('false', '0', 'no')
