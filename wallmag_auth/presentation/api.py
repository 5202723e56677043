from fastapi import APIRouter

from wallmag_auth.presentation.routers.admin import router as admin_router
from wallmag_auth.presentation.routers.auth import router as auth_router
from wallmag_auth.presentation.routers.health import router as health_router

api = APIRouter()

# Add all /api routers here
routers = (auth_router, admin_router)
for router in routers:
    api.include_router(router, prefix="/api")

api.include_router(health_router)
