"""
User repository.

Maps User entities onto the single table. The primary key is email based so
signup uniqueness is a single conditional put:

    PK = USER#{email}, SK = PROFILE
    GSI1PK = USERID#{userId}, GSI1SK = PROFILE   (lookup by id)

Emails are stored normalized (trimmed, lowercased); callers pass normalized
values.

Follows steering rules:
- Uniqueness enforced by the store, not by read-then-write checks
- No global mutable state
"""

import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from ulid import ULID

from auth_shared.errors import ConflictError, NotFoundError
from auth_shared.store import ITEM_ABSENT, ITEM_EXISTS, ConditionFailedError
from auth_shared.types import (
    EMAIL_INDEX_NAME,
    PROFILE_SK,
    ROLE_USER,
    STATUS_ACTIVE,
    STATUS_PENDING,
    USER_ID_PREFIX,
    USER_PREFIX,
    PasswordHash,
    User,
)


def _iso(epoch_seconds: float) -> str:
    return datetime.fromtimestamp(epoch_seconds, timezone.utc).isoformat().replace('+00:00', 'Z')


class UserRepository:
    """
    Persistence for user profiles.

    Usage:
        users = UserRepository(store)
        user = users.create_pending('a@example.com', hash_password('longpass1'))
        users.mark_verified(user)
    """

    def __init__(
        self,
        store: Any,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], Any] = ULID
    ):
        """
        Args:
            store: Key-value store adapter (DynamoStore)
            clock: Wall clock in epoch seconds
            id_factory: Produces unique, time-ordered user ids
        """
        self.store = store
        self.clock = clock
        self.id_factory = id_factory

    def create_pending(
        self,
        email: str,
        password: PasswordHash,
        name: Optional[str] = None
    ) -> User:
        """
        Create a user awaiting email verification.

        Args:
            email: Normalized email
            password: Salted hash of the chosen password
            name: Display name (defaults to the email local part)

        Returns:
            The created user

        Raises:
            ConflictError: If a user with this email already exists
        """
        now = _iso(self.clock())
        user = User(
            id=str(self.id_factory()),
            email=email,
            name=name or email.split('@')[0],
            status=STATUS_PENDING,
            role=ROLE_USER,
            password_salt=password.salt,
            password_hash=password.hash,
            created_at=now,
            updated_at=now
        )

        try:
            self.store.put(user.to_item(), condition=ITEM_ABSENT)
        except ConditionFailedError:
            raise ConflictError(
                'User already exists',
                {'email': email}
            ) from None

        return user

    def find_by_email(self, email: str) -> Optional[User]:
        item = self.store.get(f'{USER_PREFIX}{email}', PROFILE_SK)
        return User.from_item(item) if item else None

    def find_by_id(self, user_id: str) -> Optional[User]:
        items = self.store.query(
            f'{USER_ID_PREFIX}{user_id}',
            sk_prefix=PROFILE_SK,
            index_name=EMAIL_INDEX_NAME,
            limit=1
        )
        return User.from_item(items[0]) if items else None

    def mark_verified(self, user: User) -> User:
        """
        Transition a user from PENDING to ACTIVE.

        Already active users are returned unchanged.

        Raises:
            NotFoundError: If the profile no longer exists
        """
        if user.status == STATUS_ACTIVE:
            return user

        attributes = self._update(user.email, {'status': STATUS_ACTIVE})
        return User.from_item(attributes)

    def update_password(self, email: str, password: PasswordHash) -> User:
        """
        Overwrite the stored salt and hash.

        Raises:
            NotFoundError: If no user has this email
        """
        attributes = self._update(email, {
            'passwordSalt': password.salt,
            'passwordHash': password.hash
        })
        return User.from_item(attributes)

    def _update(self, email: str, values: dict) -> dict:
        values = {**values, 'updatedAt': _iso(self.clock())}
        try:
            return self.store.update(
                f'{USER_PREFIX}{email}',
                PROFILE_SK,
                values,
                condition=ITEM_EXISTS
            )
        except ConditionFailedError:
            raise NotFoundError('User not found') from None
