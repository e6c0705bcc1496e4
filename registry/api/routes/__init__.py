"""Top level API router registration."""
from fastapi import APIRouter, FastAPI

from registry.api.routes import admin, auth, health, registrations


def register_routes(application: FastAPI) -> None:
    """Register all API routers with the FastAPI application."""
    api_router = APIRouter(prefix="/api")

    api_router.include_router(health.router, tags=["health"])
    api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
    api_router.include_router(registrations.router, prefix="/companies", tags=["registrations"])
    api_router.include_router(admin.router, prefix="/admin", tags=["admin"])

    application.include_router(api_router)


__all__ = ["register_routes"]
