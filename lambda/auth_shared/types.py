"""
Shared type definitions for the TODO auth service.

Domain entities are dataclasses that know how to map themselves to and from
DynamoDB items. Each HTTP route has its own request dataclass; handlers only
pass these validated shapes to the service layer.
"""

from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

# User status literal type
UserStatus = Literal['PENDING', 'ACTIVE', 'INACTIVE', 'SUSPENDED']

# User role literal type
UserRole = Literal['USER', 'ADMIN']

STATUS_PENDING = 'PENDING'
STATUS_ACTIVE = 'ACTIVE'

ROLE_USER = 'USER'

# Single-table key layout
USER_PREFIX = 'USER#'
USER_ID_PREFIX = 'USERID#'
PROFILE_SK = 'PROFILE'
EMAIL_INDEX_NAME = 'GSI1'


@dataclass(frozen=True)
class PasswordHash:
    """Salt and derived key, both hex encoded."""
    salt: str
    hash: str


@dataclass
class User:
    """Complete user domain model."""
    id: str
    email: str
    name: str
    status: str
    role: str
    password_salt: str
    password_hash: str
    created_at: str
    updated_at: str

    def to_item(self) -> Dict[str, Any]:
        """Map the user to its PROFILE item, including the id index keys."""
        return {
            'PK': f'{USER_PREFIX}{self.email}',
            'SK': PROFILE_SK,
            'GSI1PK': f'{USER_ID_PREFIX}{self.id}',
            'GSI1SK': PROFILE_SK,
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'status': self.status,
            'role': self.role,
            'passwordSalt': self.password_salt,
            'passwordHash': self.password_hash,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
            'entityType': 'USER_PROFILE'
        }

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> 'User':
        return cls(
            id=item['id'],
            email=item['email'],
            name=item.get('name') or item['email'].split('@')[0],
            status=item['status'],
            role=item.get('role') or ROLE_USER,
            password_salt=item.get('passwordSalt', ''),
            password_hash=item.get('passwordHash', ''),
            created_at=item['createdAt'],
            updated_at=item['updatedAt']
        )

    def public_view(self, *fields: str) -> Dict[str, str]:
        """
        Return a sanitized view of the user.

        Only public attributes can be selected; salt and hash are never
        included.

        Args:
            *fields: Public attribute names to include
                (id, email, name, status, role, createdAt, updatedAt)
        """
        public = {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'status': self.status,
            'role': self.role,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at
        }
        selected = fields or tuple(public.keys())
        return {name: public[name] for name in selected}


@dataclass(frozen=True)
class VerificationCode:
    """A one-time numeric code stored under its owner's partition."""
    email: str
    code_id: str
    code: str
    purpose: str
    issued_at: int
    expires_at: int


@dataclass(frozen=True)
class TokenClaims:
    """Decoded, verified bearer token claims."""
    sub: str
    email: str
    role: str
    iat: int
    exp: int


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: User


# Request payloads, one per route


@dataclass(frozen=True)
class SignupRequest:
    """Request payload for POST /auth/signup."""
    email: str
    password: str
    name: Optional[str] = None


@dataclass(frozen=True)
class VerifyRequest:
    """Request payload for POST /auth/verify."""
    email: str
    code: str


@dataclass(frozen=True)
class LoginRequest:
    """Request payload for POST /auth/login."""
    email: str
    password: str


@dataclass(frozen=True)
class ResendCodeRequest:
    """Request payload for POST /auth/resend-code."""
    email: str


@dataclass(frozen=True)
class ForgotPasswordRequest:
    """Request payload for POST /auth/password/forgot."""
    email: str


@dataclass(frozen=True)
class ResetPasswordRequest:
    """Request payload for POST /auth/password/reset."""
    email: str
    code: str
    password: str


@dataclass(frozen=True)
class Route:
    """A resolved inbound route."""
    method: str
    path: str
