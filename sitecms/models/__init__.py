# SiteCMS Models
from sitecms.models.admin import AdminAccount
from sitecms.models.base import BaseModel
from sitecms.models.blacklisted_token import BlacklistedToken

__all__ = [
    "AdminAccount",
    "BaseModel",
    "BlacklistedToken",
]
