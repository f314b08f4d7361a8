"""API routes module."""
from fitstudio.api.routes.sessions import router as sessions_router
from fitstudio.api.routes.plans import router as plans_router
from fitstudio.api.routes.packages import router as packages_router

__all__ = [
    "sessions_router",
    "plans_router",
    "packages_router",
]
