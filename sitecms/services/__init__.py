# SiteCMS Services
from sitecms.services.auth import AuthService
from sitecms.services.token_blacklist import TokenBlacklistService

__all__ = [
    "AuthService",
    "TokenBlacklistService",
]
