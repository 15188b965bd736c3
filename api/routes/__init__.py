"""API Routes."""

from fastapi import APIRouter

from .admin_settings import router as admin_settings_router
from .admin_tests import router as admin_tests_router
from .admin_users import router as admin_users_router
from .auth import router as auth_router
from .billing import router as billing_router
from .catalog import router as catalog_router
from .health import router as health_router
from .history import router as history_router
from .pages import router as pages_router
from .preferences import router as preferences_router

# Mounted under /api/v1
api_router = APIRouter()

api_router.include_router(health_router, tags=["Health"])
api_router.include_router(auth_router)
api_router.include_router(preferences_router)
api_router.include_router(catalog_router)
api_router.include_router(history_router)
api_router.include_router(billing_router)
api_router.include_router(admin_settings_router)
api_router.include_router(admin_tests_router)
api_router.include_router(admin_users_router)

__all__ = ["api_router", "pages_router"]
