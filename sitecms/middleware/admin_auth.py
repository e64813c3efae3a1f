"""Admin session authentication for protected dashboard endpoints.

Every request is re-validated from scratch, in this order:

1. extract the token from the ``token`` cookie or ``Authorization: Bearer``
2. reject it if it is on the blacklist, before any cryptographic check,
   since a revoked token may still be perfectly valid otherwise
3. verify signature and expiry
4. load the admin named by the ``sub`` claim
5. attach the admin to ``request.state`` for downstream handlers

Clients only ever see a generic 401; the failing step goes to the log.
"""

import logging
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.core import get_db
from sitecms.core.config import Settings, settings
from sitecms.models.admin import AdminAccount
from sitecms.services.auth import AuthService, Unauthenticated
from sitecms.services.token_blacklist import token_fingerprint

logger = logging.getLogger(__name__)

TOKEN_COOKIE_NAME = "token"

# Issued tokens are a few hundred characters; anything far longer is not ours
MAX_TOKEN_LENGTH = 4096


def extract_token(request: Request) -> str | None:
    """Read the session token from the cookie, falling back to the bearer header.

    Oversized values are treated as absent.
    """
    token = request.cookies.get(TOKEN_COOKIE_NAME)
    if not token:
        auth_header = request.headers.get("Authorization", "")
        scheme, _, credentials = auth_header.partition(" ")
        if scheme.lower() != "bearer":
            return None
        token = credentials.strip()

    if not token or len(token) > MAX_TOKEN_LENGTH:
        return None
    return token


def unauthenticated_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Access denied",
        headers={"WWW-Authenticate": "Bearer"},
    )


class AdminAuthenticator:
    """Resolve a presented token to an admin account or raise Unauthenticated."""

    def __init__(self, session: AsyncSession, config: Settings | None = None):
        self.auth_service = AuthService(session, config)

    async def authenticate(self, token: str | None) -> AdminAccount:
        if not token:
            raise Unauthenticated("no token supplied")

        if await self.auth_service.is_token_revoked(token):
            raise Unauthenticated("revoked")

        payload = self.auth_service.decode_token(token)

        try:
            admin_id = UUID(payload["sub"])
        except (KeyError, TypeError, ValueError) as e:
            raise Unauthenticated("malformed subject") from e

        admin = await self.auth_service.get_admin_by_id(admin_id)
        if admin is None:
            raise Unauthenticated("admin no longer exists")
        return admin


def get_auth_settings() -> Settings:
    """Dependency returning the signing configuration."""
    return settings


async def get_current_admin(
    request: Request,
    db: AsyncSession = Depends(get_db),
    config: Settings = Depends(get_auth_settings),
) -> AdminAccount:
    """Dependency to get the authenticated admin for the current request."""
    token = extract_token(request)
    try:
        admin = await AdminAuthenticator(db, config).authenticate(token)
    except Unauthenticated as e:
        if token:
            logger.warning(
                f"Rejected token {token_fingerprint(token)} for "
                f"{request.method} {request.url.path}: {e.reason}"
            )
        else:
            logger.debug(f"No token for {request.method} {request.url.path}")
        raise unauthenticated_exception() from e

    request.state.admin = admin
    request.state.token = token
    return admin


async def require_session_token(
    request: Request,
    db: AsyncSession = Depends(get_db),
    config: Settings = Depends(get_auth_settings),
) -> str:
    """Dependency used by logout.

    A token that is already revoked is accepted as-is so repeated logouts
    stay idempotent. Any other token must authenticate fully before it may
    be written to the blacklist.
    """
    token = extract_token(request)
    if not token:
        raise unauthenticated_exception()

    authenticator = AdminAuthenticator(db, config)
    if await authenticator.auth_service.is_token_revoked(token):
        return token

    try:
        admin = await authenticator.authenticate(token)
    except Unauthenticated as e:
        logger.warning(
            f"Rejected logout with token {token_fingerprint(token)}: {e.reason}"
        )
        raise unauthenticated_exception() from e

    request.state.admin = admin
    request.state.token = token
    return token
