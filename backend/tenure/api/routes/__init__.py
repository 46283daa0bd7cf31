from fastapi import APIRouter

from tenure.api.routes import discover, features, health, navigation

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(discover.router, prefix="/discover", tags=["discover"])
api_router.include_router(navigation.router, prefix="/navigation", tags=["navigation"])
api_router.include_router(features.router, prefix="/features", tags=["features"])
