"""
Main entry point for the Configuration Settings Editor
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from app.core.config import settings
from app.core.database import engine, init_db
from app.core.errors import ConnectivityError, PersistenceError
from app.api.routes import api_router, set_services
from app.services.session_controller import SessionContext, SessionController
from app.services.value_validator import apply_number_locale

# Configure logging
Path(settings.LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(settings.LOG_FILE),
        logging.StreamHandler()
    ]
)

logger = logging.getLogger(__name__)

# Value parsing reads the decimal convention from LC_NUMERIC
apply_number_locale(settings.NUMBER_LOCALE)

# Global services
controller = SessionController(pairing=settings.SETTINGS_PAIRING)
session_context = SessionContext()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting Configuration Settings Editor...")

    if settings.VERIFY_MIGRATIONS:
        init_db(engine)

    set_services(controller, session_context)

    if settings.AUTO_CONNECT:
        try:
            controller.connect(session_context, settings.DATABASE_URL)
        except (ConnectivityError, PersistenceError) as e:
            # The editor stays up; the operator can connect through the API.
            logger.error(f"Auto-connect failed: {e.message}")

    logger.info("Configuration editor started")

    yield

    # Cleanup
    logger.info("Shutting down configuration editor...")
    session_context.connection.close()
    logger.info("Configuration editor stopped.")

# Create FastAPI app
app = FastAPI(
    title="Configuration Settings Editor",
    description="View and edit named numeric configuration settings",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Configuration Settings Editor API",
        "version": "1.0.0",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "connected": session_context.connection.is_connected,
        "state": session_context.state.value
    }


def main():
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    main()
