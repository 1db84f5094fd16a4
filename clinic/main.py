"""
Main FastAPI application entry point.
Configures the application, middleware, and includes routers.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from . import __version__
from .config import Settings, settings
from .database import Base, engine
from .exceptions import register_exception_handlers
from .core.middleware import setup_middlewares
from .core.rate_limit import ClientRateLimiter
from .auth.router import router as auth_router
from .patients.router import router as patients_router
# Import all models here for creating tables
from .auth import models as auth_models  # noqa: F401
from .patients import models as patient_models  # noqa: F401

logger = logging.getLogger(__name__)

def create_app(app_settings: Settings = settings) -> FastAPI:
    """
    Build the application.
    
    Args:
        app_settings: Settings to configure the application with
        
    Returns:
        FastAPI: Configured application
    """
    logging.basicConfig(level=app_settings.log_level.upper())
    
    limiter = ClientRateLimiter(
        rate=app_settings.limiter_rps,
        burst=app_settings.limiter_burst,
        idle_seconds=app_settings.limiter_idle_seconds,
        sweep_seconds=app_settings.limiter_sweep_seconds
    )
    
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting Clinic API ({app_settings.environment})")
        if app_settings.create_tables:
            # Create database tables if they don't exist
            Base.metadata.create_all(bind=engine)
        if app_settings.limiter_enabled:
            limiter.start()
        yield
        await limiter.stop()
        logger.info("Clinic API stopped")
    
    app = FastAPI(
        title="Clinic API",
        description="API for doctors, receptionists and patient records",
        version=__version__,
        lifespan=lifespan
    )
    app.state.limiter = limiter
    
    # Register exception handlers
    register_exception_handlers(app)
    
    # Setup custom middleware
    setup_middlewares(app, limiter, rate_limit_enabled=app_settings.limiter_enabled)
    
    # Configure CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_trusted_origins,
        allow_credentials=True,
        allow_methods=["OPTIONS", "GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "Role"],
    )
    
    # Include routers
    app.include_router(auth_router)
    app.include_router(patients_router)
    
    @app.get("/v1/healthcheck", tags=["Health"])
    def healthcheck():
        """
        Report that the API is available.
        """
        return {
            "status": "available",
            "system_info": {
                "environment": app_settings.environment,
                "version": __version__
            }
        }
    
    return app

app = create_app()
