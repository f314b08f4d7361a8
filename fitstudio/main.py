"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fitstudio.config.settings import get_settings
from fitstudio.core.error_handlers import domain_error_handler
from fitstudio.core.exceptions import DomainError
from fitstudio.core.logging import configure_logging
from fitstudio.db.database import close_engine, init_db
from fitstudio.middleware import RequestIDMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    configure_logging()

    # Startup: Initialize database
    await init_db()

    yield

    # Shutdown: Close database connections
    await close_engine()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Assigns studio clients to live session batches and diet/workout plan templates",
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(DomainError, domain_error_handler)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "app": settings.app_name}

    from fitstudio.api.routes import packages_router, plans_router, sessions_router

    app.include_router(sessions_router, prefix="/sessions", tags=["Live Sessions"])
    app.include_router(plans_router, prefix="/plans", tags=["Plans"])
    app.include_router(packages_router, prefix="/packages", tags=["Packages"])

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("fitstudio.main:app", host="0.0.0.0", port=8000, reload=True)
