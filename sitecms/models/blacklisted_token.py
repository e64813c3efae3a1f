"""Revoked session tokens."""

from datetime import datetime

from sqlalchemy import DateTime, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from sitecms.core.database import Base
from sitecms.models.base import utcnow


class BlacklistedToken(Base):
    """A token revoked by logout, keyed by the exact string the client sent.

    expires_at mirrors the token's own expiry so rows can be pruned once
    the token could no longer authenticate anyway.
    """

    __tablename__ = "blacklisted_tokens"

    token: Mapped[str] = mapped_column(Text, primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<BlacklistedToken expires_at={self.expires_at}>"
