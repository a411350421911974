"""
One-time verification code issuer.

Codes are 6-digit numeric strings drawn from a cryptographically secure
source. Each issuance is stored as its own item under the owner's partition:

    PK = USER#{email}
    SK = VERIFICATION#{codeId}   (signup verification, 10 minutes)
    SK = RESET#{codeId}          (password reset, 30 minutes)

Code ids are ULIDs, so sort key order is issuance order. Several codes may be
outstanding at once; reissuing does not invalidate earlier ones. Expiry is
enforced twice: by the table's `ttl` attribute (DynamoDB deletes lazily) and
by comparing `expiresAt` at read time.

Follows steering rules:
- Business logic in services, not handlers
- No global mutable state
- Explicit error handling
"""

import hmac
import secrets
import time
from typing import Any, Callable, Dict, Optional

from ulid import ULID

from auth_shared.errors import InvalidCodeError
from auth_shared.store import ITEM_EXISTS, ConditionFailedError
from auth_shared.types import USER_PREFIX, VerificationCode


CODE_LENGTH = 6

# Number of most recent codes considered when matching
RECENT_CODES_WINDOW = 5

PURPOSE_SIGNUP = 'SIGNUP'
PURPOSE_PASSWORD_RESET = 'PASSWORD_RESET'

SORT_KEY_PREFIXES = {
    PURPOSE_SIGNUP: 'VERIFICATION#',
    PURPOSE_PASSWORD_RESET: 'RESET#',
}

TTL_SECONDS = {
    PURPOSE_SIGNUP: 10 * 60,
    PURPOSE_PASSWORD_RESET: 30 * 60,
}


def generate_numeric_code(length: int = CODE_LENGTH) -> str:
    """Uniformly random decimal code, leading zeros preserved."""
    return str(secrets.randbelow(10 ** length)).zfill(length)


class VerificationCodeIssuer:
    """
    Issues, matches and consumes one-time codes.

    Usage:
        issuer = VerificationCodeIssuer(store, mailer)
        issuer.issue('a@example.com', PURPOSE_SIGNUP)
        record = issuer.verify('a@example.com', '123456', PURPOSE_SIGNUP)
        if record:
            issuer.invalidate('a@example.com', record.code_id, PURPOSE_SIGNUP)
    """

    def __init__(
        self,
        store: Any,
        mailer: Any,
        clock: Callable[[], float] = time.time,
        code_factory: Callable[[], str] = generate_numeric_code,
        id_factory: Callable[[], Any] = ULID
    ):
        """
        Initialize the issuer.

        Args:
            store: Key-value store adapter (DynamoStore)
            mailer: Object with send_code(email, code, purpose, ttl_seconds)
            clock: Wall clock in epoch seconds
            code_factory: Produces the numeric code
            id_factory: Produces unique, time-ordered code ids
        """
        self.store = store
        self.mailer = mailer
        self.clock = clock
        self.code_factory = code_factory
        self.id_factory = id_factory

    def issue(self, email: str, purpose: str = PURPOSE_SIGNUP) -> VerificationCode:
        """
        Generate, persist and deliver a new code.

        The code is persisted before delivery so a delivered code is always
        verifiable.

        Args:
            email: Normalized owner email
            purpose: PURPOSE_SIGNUP or PURPOSE_PASSWORD_RESET

        Returns:
            The stored code record

        Raises:
            botocore.exceptions.ClientError: If the store write or the email send fails
        """
        prefix = _prefix_for(purpose)
        ttl_seconds = TTL_SECONDS[purpose]
        issued_at = int(self.clock())

        record = VerificationCode(
            email=email,
            code_id=str(self.id_factory()),
            code=self.code_factory(),
            purpose=purpose,
            issued_at=issued_at,
            expires_at=issued_at + ttl_seconds
        )

        self.store.put({
            'PK': f'{USER_PREFIX}{email}',
            'SK': f'{prefix}{record.code_id}',
            'email': record.email,
            'codeId': record.code_id,
            'code': record.code,
            'purpose': record.purpose,
            'issuedAt': record.issued_at,
            'expiresAt': record.expires_at,
            'ttl': record.expires_at,
            'entityType': 'VERIFICATION_CODE'
        })

        self.mailer.send_code(email, record.code, purpose, ttl_seconds)

        return record

    def verify(
        self,
        email: str,
        supplied_code: str,
        purpose: str = PURPOSE_SIGNUP
    ) -> Optional[VerificationCode]:
        """
        Find an unexpired code matching the supplied value.

        Scans the most recent RECENT_CODES_WINDOW codes, newest first.

        Returns:
            The matching record, or None when the code is invalid or expired
        """
        prefix = _prefix_for(purpose)
        now = int(self.clock())

        items = self.store.query(
            f'{USER_PREFIX}{email}',
            sk_prefix=prefix,
            limit=RECENT_CODES_WINDOW,
            newest_first=True
        )

        for item in items:
            stored_code = str(item.get('code', ''))
            if int(item.get('expiresAt', 0)) <= now:
                continue
            if hmac.compare_digest(stored_code.encode(), supplied_code.encode()):
                return _from_item(item, purpose)

        return None

    def invalidate(self, email: str, code_id: str, purpose: str = PURPOSE_SIGNUP) -> None:
        """
        Consume a code.

        The delete is conditional on the item still existing, so of two
        concurrent verifications with the same code only one succeeds.

        Raises:
            InvalidCodeError: If the code was already consumed
        """
        try:
            self.store.delete(
                f'{USER_PREFIX}{email}',
                f'{_prefix_for(purpose)}{code_id}',
                condition=ITEM_EXISTS
            )
        except ConditionFailedError:
            raise InvalidCodeError() from None


def _prefix_for(purpose: str) -> str:
    try:
        return SORT_KEY_PREFIXES[purpose]
    except KeyError:
        raise ValueError(f"Unknown code purpose '{purpose}'") from None


def _from_item(item: Dict[str, Any], purpose: str) -> VerificationCode:
    return VerificationCode(
        email=item['email'],
        code_id=item['codeId'],
        code=str(item['code']),
        purpose=item.get('purpose', purpose),
        issued_at=int(item['issuedAt']),
        expires_at=int(item['expiresAt'])
    )
