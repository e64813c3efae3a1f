"""Authentication service: admin accounts, credential checks and session tokens."""

import logging
import re
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any
from uuid import UUID

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from jwt.exceptions import PyJWTError
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from sitecms.core.config import Settings, settings
from sitecms.models.admin import AdminAccount
from sitecms.services.token_blacklist import TokenBlacklistService

logger = logging.getLogger(__name__)

# Argon2 password hasher with recommended parameters
# Memory: 64 MiB, Time: 3 iterations, Parallelism: 4
ph = PasswordHasher(
    time_cost=3,
    memory_cost=65536,
    parallelism=4,
    hash_len=32,
    salt_len=16,
)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 100
EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials (username/email/password)"


class AuthError(Exception):
    """Base authentication error."""

    pass


class ValidationError(AuthError):
    """Malformed account or login input."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class DuplicateAccount(AuthError):
    """Username or email already belongs to another admin."""

    def __init__(self, field: str):
        super().__init__(f"An admin with this {field} already exists")
        self.field = field


class InvalidCredentials(AuthError):
    """Login failed. Deliberately silent about why."""

    def __init__(self):
        super().__init__(INVALID_CREDENTIALS_MESSAGE)


class Unauthenticated(AuthError):
    """Missing, revoked, expired or otherwise unusable session token.

    reason is for logs only and must never reach the client.
    """

    def __init__(self, reason: str):
        super().__init__(f"Unauthenticated: {reason}")
        self.reason = reason


@dataclass(frozen=True)
class ByEmail:
    email: str


@dataclass(frozen=True)
class ByUsername:
    username: str


LoginIdentifier = ByEmail | ByUsername


def login_identifier(email: str | None, username: str | None) -> LoginIdentifier:
    """Resolve the email-or-username login field once, preferring email."""
    if email:
        return ByEmail(email.lower())
    if username:
        return ByUsername(username)
    raise ValidationError("identifier", "Please supply either an email address or a username")


def hash_password(password: str) -> str:
    """Hash a password using Argon2id."""
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash using constant-time comparison."""
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password(secrets.token_hex(16))


def _check_password(password: str, password_hash: str | None) -> bool:
    """Blocking verify; unknown accounts are checked against a dummy hash."""
    return verify_password(password, password_hash if password_hash is not None else _dummy_hash())


def validate_account_fields(username: str, email: str, password: str) -> None:
    """Apply the account rules shared by the API and the provisioning script."""
    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        raise ValidationError(
            "username",
            f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters",
        )
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("email", "Please provide a valid email address")
    if not PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH:
        raise ValidationError(
            "password",
            f"Password must be between {PASSWORD_MIN_LENGTH} and {PASSWORD_MAX_LENGTH} characters",
        )


class AuthService:
    """Service for authentication operations.

    The session and the signing configuration are passed in explicitly;
    config defaults to the process-wide settings.
    """

    def __init__(self, session: AsyncSession, config: Settings | None = None):
        self.session = session
        self.config = config or settings
        self.blacklist = TokenBlacklistService(session)

    # --- Credential store ---

    async def admin_exists(self) -> bool:
        """Check if any admin account exists."""
        result = await self.session.execute(select(func.count(AdminAccount.id)))
        return (result.scalar() or 0) > 0

    async def get_admin_by_id(self, admin_id: UUID) -> AdminAccount | None:
        result = await self.session.execute(select(AdminAccount).where(AdminAccount.id == admin_id))
        return result.scalar_one_or_none()

    async def get_admin_by_username(self, username: str) -> AdminAccount | None:
        result = await self.session.execute(
            select(AdminAccount).where(AdminAccount.username == username)
        )
        return result.scalar_one_or_none()

    async def get_admin_by_email(self, email: str) -> AdminAccount | None:
        result = await self.session.execute(
            select(AdminAccount).where(AdminAccount.email == email.lower())
        )
        return result.scalar_one_or_none()

    async def _conflicting_field(self, username: str, email: str) -> str | None:
        if await self.get_admin_by_username(username) is not None:
            return "username"
        if await self.get_admin_by_email(email) is not None:
            return "email"
        return None

    async def create_admin(self, username: str, email: str, password: str) -> AdminAccount:
        """Create a new admin account.

        Raises ValidationError for malformed fields and DuplicateAccount
        when the username or email is taken, including when a concurrent
        request wins the race at the unique constraint.
        """
        email = email.lower()
        validate_account_fields(username, email, password)

        conflict = await self._conflicting_field(username, email)
        if conflict:
            raise DuplicateAccount(conflict)

        password_hash = await run_in_threadpool(hash_password, password)
        admin = AdminAccount(username=username, email=email, password_hash=password_hash)
        try:
            async with self.session.begin_nested():
                self.session.add(admin)
        except IntegrityError as e:
            field = await self._conflicting_field(username, email) or "username"
            raise DuplicateAccount(field) from e

        await self.session.commit()

        logger.info(f"Created admin account: {username}")
        return admin

    async def verify_credentials(self, identifier: LoginIdentifier, password: str) -> AdminAccount:
        """Return the matching admin or raise InvalidCredentials.

        Unknown accounts and wrong passwords share one failure path so the
        response cannot be used to enumerate accounts.
        """
        if isinstance(identifier, ByEmail):
            admin = await self.get_admin_by_email(identifier.email)
        else:
            admin = await self.get_admin_by_username(identifier.username)

        matches = await run_in_threadpool(
            _check_password, password, admin.password_hash if admin is not None else None
        )

        if admin is None or not matches:
            raise InvalidCredentials()
        return admin

    # --- Tokens ---

    @property
    def token_lifetime(self) -> timedelta:
        return timedelta(minutes=self.config.jwt_access_token_expire_minutes)

    def issue_token(self, admin: AdminAccount) -> str:
        """Create a signed, time-bounded session token for an admin."""
        now = datetime.now(UTC)
        payload = {
            "sub": str(admin.id),
            "username": admin.username,
            "iat": now,
            "exp": now + self.token_lifetime,
            "type": "access",
            "jti": secrets.token_hex(16),
        }
        token = jwt.encode(
            payload,
            self.config.effective_jwt_secret_key,
            algorithm=self.config.jwt_algorithm,
        )
        # PyJWT 2.x returns str; older type stubs may declare bytes
        return str(token)

    def decode_token(self, token: str) -> dict[str, Any]:
        """Verify signature, expiry and token type; return the payload."""
        try:
            payload = jwt.decode(
                token,
                self.config.effective_jwt_secret_key,
                algorithms=[self.config.jwt_algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise Unauthenticated("expired") from e
        except PyJWTError as e:
            raise Unauthenticated("invalid signature or format") from e

        if payload.get("type") != "access":
            raise Unauthenticated("not an access token")
        return payload

    def token_expiry(self, token: str) -> datetime:
        """Best-effort expiry of a token, for blacklist bookkeeping only.

        The claims are read without verification. Anything unreadable is
        kept for the longest lifetime a token of ours could have.
        """
        fallback = datetime.now(UTC) + self.token_lifetime
        try:
            claims = jwt.decode(token, options={"verify_signature": False})
        except PyJWTError:
            return fallback
        exp = claims.get("exp")
        if not isinstance(exp, int | float):
            return fallback
        try:
            return datetime.fromtimestamp(exp, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return fallback

    async def revoke_token(self, token: str) -> None:
        """Blacklist a token. Revoking an already revoked token is a no-op."""
        await self.blacklist.revoke(token, self.token_expiry(token))

    async def is_token_revoked(self, token: str) -> bool:
        return await self.blacklist.is_revoked(token)
