"""
Main FastAPI application entry point.
Configures the application, middleware, and includes routers.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
import logging
from .auth.router import router as auth_router
from .collaborators import Collaborators, build_collaborators
from .config import Settings, get_settings
from .doctors.router import router as doctors_router
from .exceptions import register_exception_handlers
from .core.middleware import setup_middlewares
from .intake.router import router as intake_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Clinic Intake API...")
    app.state.collaborators.repository.initialize()
    yield
    logger.info("Clinic Intake API stopped")


def create_app(
    settings: Optional[Settings] = None,
    collaborators: Optional[Collaborators] = None
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Application settings (read from the environment when omitted)
        collaborators: Storage, enrichment, notification and identity
            implementations (built from settings when omitted)

    Returns:
        FastAPI: Configured application
    """
    settings = settings or get_settings()

    # Configure logging
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        description="API for patient intake, AI triage summaries and doctor responses",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.collaborators = collaborators or build_collaborators(settings)

    # Register exception handlers
    register_exception_handlers(app)

    # Setup custom middleware (CORS policy and request logging)
    setup_middlewares(app, settings)

    # Include routers
    app.include_router(intake_router, tags=["Intake"])
    app.include_router(doctors_router, tags=["Doctors"])
    app.include_router(auth_router, prefix="/auth", tags=["Authentication"])

    # Root endpoint
    @app.get("/")
    def root():
        """
        Root endpoint for API health check.

        Returns:
            dict: Simple welcome message
        """
        return {"message": f"Welcome to {settings.app_name}"}

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """
        Health check endpoint for monitoring.

        Returns:
            dict: Health status information
        """
        return {"status": "healthy", "storage": settings.storage_backend.value}

    return app


app = create_app()
