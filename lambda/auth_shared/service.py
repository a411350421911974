"""
Auth service.

This module implements the business logic for the custom email/password
authentication flow:
- Signup: create a PENDING user and email a verification code
- Verify: consume a code and activate the user (PENDING -> ACTIVE)
- Login: check credentials and issue a bearer token
- Resend code, forgot password and reset password

Decisions:
- Signup for an email whose user is still PENDING is rejected with a
  conflict; a fresh code is obtained through resend_code.
- Login checks the account status before the password, so an unverified
  account is reported as such whatever password is supplied. Unknown email
  and wrong password share one error.
- If sending the verification email fails after the user was created, the
  user stays PENDING without a delivered code. Nothing is rolled back;
  resend_code is the recovery path.

Follows steering rules:
- Business logic in services, not handlers
- No global mutable state
- Explicit error handling
"""

from typing import Dict

from auth_shared.codes import (
    PURPOSE_PASSWORD_RESET,
    PURPOSE_SIGNUP,
    VerificationCodeIssuer,
)
from auth_shared.config import is_production
from auth_shared.errors import (
    ConflictError,
    InvalidCodeError,
    InvalidCredentialsError,
    NotVerifiedError,
)
from auth_shared.mailer import SesCodeMailer
from auth_shared.passwords import hash_password, verify_password
from auth_shared.signing_secret import SsmSecretProvider
from auth_shared.store import DynamoStore
from auth_shared.tokens import TokenService
from auth_shared.types import (
    STATUS_ACTIVE,
    STATUS_PENDING,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResult,
    ResendCodeRequest,
    ResetPasswordRequest,
    SignupRequest,
    User,
    VerifyRequest,
)
from auth_shared.users import UserRepository


def build_token_service(config: Dict[str, str]) -> TokenService:
    """
    Build a TokenService backed by SSM Parameter Store.

    The development fallback secret is only allowed outside production.
    """
    secret_provider = SsmSecretProvider(
        config['jwt_secret_parameter_name'],
        cache_ttl_seconds=int(config['secret_cache_ttl_seconds']),
        allow_fallback=not is_production(config)
    )
    return TokenService(
        secret_provider,
        lifetime_seconds=int(config['token_ttl_hours']) * 60 * 60
    )


class AuthService:
    """
    Orchestrates signup, verification and login.

    Composes the user repository, the code issuer and the token service;
    all persistence goes through the injected collaborators.
    """

    def __init__(
        self,
        users: UserRepository,
        codes: VerificationCodeIssuer,
        tokens: TokenService
    ):
        self.users = users
        self.codes = codes
        self.tokens = tokens

    @classmethod
    def from_config(cls, config: Dict[str, str]) -> 'AuthService':
        """
        Wire the service against AWS.

        Args:
            config: Dictionary containing:
                - table_name: Name of the DynamoDB auth table
                - jwt_secret_parameter_name: SSM parameter holding the signing secret
                - source_email: Verified SES sender identity
                - environment, token_ttl_hours, secret_cache_ttl_seconds
        """
        store = DynamoStore(config['table_name'])
        mailer = SesCodeMailer(config['source_email'])
        return cls(
            users=UserRepository(store),
            codes=VerificationCodeIssuer(store, mailer),
            tokens=build_token_service(config)
        )

    def signup(self, request: SignupRequest) -> User:
        """
        Register a new user and send a verification code.

        This method implements the signup flow:
        1. Reject emails that already belong to a user (ACTIVE or PENDING)
        2. Hash the password
        3. Create the PENDING user with a conditional write
        4. Issue and deliver a signup code

        Step 1 only gives a friendlier error; step 3 is what guarantees
        uniqueness when two signups race.

        Returns:
            The created PENDING user

        Raises:
            ConflictError: If the email is already registered or awaiting verification
        """
        existing = self.users.find_by_email(request.email)
        if existing is not None:
            raise _existing_user_conflict(existing)

        user = self.users.create_pending(
            request.email,
            hash_password(request.password),
            name=request.name
        )

        self.codes.issue(user.email, PURPOSE_SIGNUP)

        return user

    def verify(self, request: VerifyRequest) -> User:
        """
        Activate a user with a signup code.

        The code is consumed before the user is activated; the conditional
        delete decides which of two concurrent verifications wins.

        Returns:
            The ACTIVE user

        Raises:
            InvalidCodeError: If no user exists or the code is wrong, expired or used
        """
        user = self.users.find_by_email(request.email)
        if user is None:
            raise InvalidCodeError()

        record = self.codes.verify(request.email, request.code, PURPOSE_SIGNUP)
        if record is None:
            raise InvalidCodeError()

        self.codes.invalidate(request.email, record.code_id, PURPOSE_SIGNUP)

        return self.users.mark_verified(user)

    def login(self, request: LoginRequest) -> LoginResult:
        """
        Authenticate with email and password.

        Returns:
            LoginResult with a signed bearer token and the user

        Raises:
            InvalidCredentialsError: If the email is unknown or the password is wrong
            NotVerifiedError: If the account has not been verified
        """
        user = self.users.find_by_email(request.email)
        if user is None:
            raise InvalidCredentialsError()

        if user.status != STATUS_ACTIVE:
            raise NotVerifiedError()

        if not verify_password(request.password, user.password_salt, user.password_hash):
            raise InvalidCredentialsError()

        return LoginResult(token=self.tokens.issue(user), user=user)

    def resend_code(self, request: ResendCodeRequest) -> bool:
        """
        Issue a new signup code for a PENDING user.

        Earlier codes stay valid until they expire.

        Returns:
            True if a code was sent. Handlers must not reveal this to the client.
        """
        user = self.users.find_by_email(request.email)
        if user is None or user.status != STATUS_PENDING:
            return False

        self.codes.issue(user.email, PURPOSE_SIGNUP)
        return True

    def request_password_reset(self, request: ForgotPasswordRequest) -> bool:
        """
        Issue a password reset code for an ACTIVE user.

        Returns:
            True if a code was sent. Handlers must not reveal this to the client.
        """
        user = self.users.find_by_email(request.email)
        if user is None or user.status != STATUS_ACTIVE:
            return False

        self.codes.issue(user.email, PURPOSE_PASSWORD_RESET)
        return True

    def reset_password(self, request: ResetPasswordRequest) -> User:
        """
        Set a new password using a reset code.

        Raises:
            InvalidCodeError: If no active user exists or the code is wrong, expired or used
        """
        user = self.users.find_by_email(request.email)
        if user is None or user.status != STATUS_ACTIVE:
            raise InvalidCodeError('Invalid or expired reset code')

        record = self.codes.verify(request.email, request.code, PURPOSE_PASSWORD_RESET)
        if record is None:
            raise InvalidCodeError('Invalid or expired reset code')

        self.codes.invalidate(request.email, record.code_id, PURPOSE_PASSWORD_RESET)

        return self.users.update_password(request.email, hash_password(request.password))


def _existing_user_conflict(user: User) -> ConflictError:
    if user.status == STATUS_PENDING:
        return ConflictError(
            'Signup already in progress for this email; request a new verification code',
            {'reason': 'PENDING_VERIFICATION'}
        )
    return ConflictError('User already exists')
