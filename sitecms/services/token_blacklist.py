"""Database-backed revocation list for session tokens."""

import hashlib
import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sitecms.models.blacklisted_token import BlacklistedToken

logger = logging.getLogger(__name__)


def token_fingerprint(token: str) -> str:
    """Short, non-reversible identifier for a token, safe to log."""
    return hashlib.sha256(token.encode()).hexdigest()[:12]


class TokenBlacklistService:
    """Insert, look up and prune revoked tokens.

    Lookups compare the exact token string presented by the client.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def is_revoked(self, token: str) -> bool:
        """Check if a token has been revoked."""
        result = await self.session.execute(
            select(BlacklistedToken.token).where(BlacklistedToken.token == token)
        )
        return result.scalar_one_or_none() is not None

    async def revoke(self, token: str, expires_at: datetime) -> bool:
        """Add a token to the blacklist.

        Returns True if a new entry was written, False if the token was
        already revoked. Losing a concurrent insert race is not an error.
        """
        if await self.is_revoked(token):
            return False

        try:
            async with self.session.begin_nested():
                self.session.add(BlacklistedToken(token=token, expires_at=expires_at))
        except IntegrityError:
            logger.debug(f"Token {token_fingerprint(token)} was revoked concurrently")
            return False
        return True

    async def cleanup_expired(self, now: datetime | None = None) -> int:
        """Remove entries whose token has expired. Returns count removed."""
        now = now or datetime.now(tz=UTC)
        result: CursorResult[Any] = await self.session.execute(  # type: ignore[assignment]
            delete(BlacklistedToken).where(BlacklistedToken.expires_at < now)
        )
        return result.rowcount or 0
