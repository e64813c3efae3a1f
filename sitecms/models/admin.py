"""Admin account model for dashboard authentication."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from sitecms.models.base import BaseModel


class AdminAccount(BaseModel):
    """Administrator of the content-management dashboard.

    Username and email are each unique at the storage layer; concurrent
    creation races are settled by those constraints. The password is only
    ever held as an argon2 hash and is excluded from every read path.
    """

    __tablename__ = "admins"

    username: Mapped[str] = mapped_column(String(20), nullable=False, unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<AdminAccount {self.username}>"
