"""Pydantic schemas for the admin authentication API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from sitecms.services.auth import (
    PASSWORD_MAX_LENGTH,
    PASSWORD_MIN_LENGTH,
    USERNAME_MAX_LENGTH,
    USERNAME_MIN_LENGTH,
)


class AdminCreateRequest(BaseModel):
    """Request for creating an admin account."""

    username: str = Field(
        ...,
        min_length=USERNAME_MIN_LENGTH,
        max_length=USERNAME_MAX_LENGTH,
        description="Username (3-20 characters)",
    )
    email: EmailStr
    password: str = Field(
        ...,
        min_length=PASSWORD_MIN_LENGTH,
        max_length=PASSWORD_MAX_LENGTH,
        description="Password (minimum 6 characters)",
    )


class LoginRequest(BaseModel):
    """Request for login with either an email or a username."""

    email: EmailStr | None = None
    username: str | None = Field(None, min_length=USERNAME_MIN_LENGTH)
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)

    @field_validator("email", "username", mode="before")
    @classmethod
    def blank_as_missing(cls, v):
        """Dashboard forms send empty strings for fields left blank."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class AdminResponse(BaseModel):
    """Public projection of an admin account. Never carries the password."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: str
    created_at: datetime


class AdminCreatedResponse(BaseModel):
    message: str
    admin: AdminResponse


class LoginResponse(BaseModel):
    token: str
    admin: AdminResponse


class ProfileResponse(BaseModel):
    admin: AdminResponse


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
