"""SiteCMS API routers."""

from sitecms.api.admin import router as admin_router
from sitecms.api.health import router as health_router

__all__ = ["admin_router", "health_router"]
