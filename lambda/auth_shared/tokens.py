"""
Bearer token issuance and verification.

Tokens are compact HS256 JWTs (base64url header.payload.signature) carrying
the user id (`sub`), email, role, issued-at and expiry. They are stateless:
there is no refresh and no revocation, expiry is the only way a token ends.
"""

import time
from typing import Any, Callable

import jwt

from auth_shared.errors import AuthenticationError
from auth_shared.types import ROLE_USER, TokenClaims, User


ALGORITHM = 'HS256'
DEFAULT_LIFETIME_SECONDS = 24 * 60 * 60
REQUIRED_CLAIMS = ['sub', 'email', 'iat', 'exp']


class TokenService:
    """
    Issues and verifies signed bearer tokens.

    The signing secret comes from an injected provider (see signing_secret),
    which owns caching and re-fetching.
    """

    def __init__(
        self,
        secret_provider: Any,
        lifetime_seconds: int = DEFAULT_LIFETIME_SECONDS,
        clock: Callable[[], float] = time.time
    ):
        if lifetime_seconds <= 0:
            raise ValueError('Token lifetime must be positive')

        self.secret_provider = secret_provider
        self.lifetime_seconds = lifetime_seconds
        self.clock = clock

    def issue(self, user: User) -> str:
        """Build a signed token for a user."""
        issued_at = int(self.clock())
        payload = {
            'sub': user.id,
            'email': user.email,
            'role': user.role or ROLE_USER,
            'iat': issued_at,
            'exp': issued_at + self.lifetime_seconds
        }
        return jwt.encode(payload, self.secret_provider.get_secret(), algorithm=ALGORITHM)

    def verify(self, token: str) -> TokenClaims:
        """
        Check signature, required claims and expiry.

        Expiry is judged against this service's clock. A token is valid
        through its `exp` second and rejected strictly after it.

        Returns:
            Decoded claims

        Raises:
            AuthenticationError: If the token is malformed, tampered with,
                expired or missing a required claim
        """
        if not token or not isinstance(token, str):
            raise AuthenticationError('Invalid or expired token')

        secret = self.secret_provider.get_secret()
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[ALGORITHM],
                options={
                    'verify_exp': False,
                    'verify_iat': False,
                    'require': REQUIRED_CLAIMS
                }
            )
        except jwt.InvalidTokenError:
            raise AuthenticationError('Invalid or expired token') from None

        if not payload.get('sub') or not payload.get('email'):
            raise AuthenticationError('Invalid or expired token')

        try:
            issued_at = int(payload['iat'])
            expires_at = int(payload['exp'])
        except (TypeError, ValueError):
            raise AuthenticationError('Invalid or expired token') from None

        if expires_at < int(self.clock()):
            raise AuthenticationError('Invalid or expired token')

        return TokenClaims(
            sub=str(payload['sub']),
            email=str(payload['email']),
            role=str(payload.get('role') or ROLE_USER),
            iat=issued_at,
            exp=expires_at
        )
