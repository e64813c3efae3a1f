from sitecms.schemas.admin import (
    AdminCreatedResponse,
    AdminCreateRequest,
    AdminResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileResponse,
)

__all__ = [
    "AdminCreateRequest",
    "AdminCreatedResponse",
    "AdminResponse",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "ProfileResponse",
]
