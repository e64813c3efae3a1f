"""Middleware module for SiteCMS backend."""

from sitecms.middleware.admin_auth import (
    AdminAuthenticator,
    extract_token,
    get_current_admin,
    require_session_token,
)
from sitecms.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "AdminAuthenticator",
    "SecurityHeadersMiddleware",
    "extract_token",
    "get_current_admin",
    "require_session_token",
]
