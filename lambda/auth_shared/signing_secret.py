"""
Token signing secret providers.

The HMAC secret lives in SSM Parameter Store. A provider instance is built
once per Lambda cold start and passed to the TokenService; it caches the
secret for a bounded time so a rotated parameter is picked up without a
redeploy. A cold or stale cache is refilled transparently.

Non-production environments may opt into a fixed development secret when
Parameter Store is unreachable. That secret is public knowledge and must
never be allowed in production.
"""

import time
from typing import Any, Callable, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from auth_shared.logger import log_event


DEV_FALLBACK_SECRET = 'dev-fallback-secret-key-not-for-production'


class StaticSecretProvider:
    """Returns a fixed secret. For local runs and tests."""

    def __init__(self, secret: str):
        if not secret:
            raise ValueError('Secret must not be empty')
        self._secret = secret

    def get_secret(self) -> str:
        return self._secret


class SsmSecretProvider:
    """
    Fetches the signing secret from SSM Parameter Store with a TTL cache.

    Usage:
        provider = SsmSecretProvider('/todo-auth/jwt-secret', cache_ttl_seconds=300)
        secret = provider.get_secret()
    """

    def __init__(
        self,
        parameter_name: str,
        cache_ttl_seconds: int = 300,
        allow_fallback: bool = False,
        client: Any = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the provider.

        Args:
            parameter_name: SecureString parameter holding the secret
            cache_ttl_seconds: How long a fetched secret is reused
            allow_fallback: Return DEV_FALLBACK_SECRET when the fetch fails
            client: Pre-built SSM client (optional)
            clock: Monotonic time source in seconds
        """
        if not parameter_name:
            raise ValueError('Secret parameter name is required')

        self.parameter_name = parameter_name
        self.cache_ttl_seconds = cache_ttl_seconds
        self.allow_fallback = allow_fallback
        self.ssm = client if client is not None else boto3.client('ssm')
        self._clock = clock
        self._secret: Optional[str] = None
        self._fetched_at = 0.0

    def get_secret(self) -> str:
        """
        Return the signing secret, fetching it when the cache is cold or stale.

        Raises:
            ClientError, BotoCoreError: If the fetch fails and fallback is not allowed
        """
        now = self._clock()
        if self._secret is not None and now - self._fetched_at < self.cache_ttl_seconds:
            return self._secret

        try:
            response = self.ssm.get_parameter(Name=self.parameter_name, WithDecryption=True)
        except (ClientError, BotoCoreError) as error:
            if not self.allow_fallback:
                raise
            log_event(
                'secret_fallback',
                parameterName=self.parameter_name,
                errorType=type(error).__name__
            )
            return DEV_FALLBACK_SECRET

        self._secret = response['Parameter']['Value']
        self._fetched_at = now
        return self._secret

    def clear(self) -> None:
        """Drop the cached secret so the next call re-fetches."""
        self._secret = None
        self._fetched_at = 0.0
