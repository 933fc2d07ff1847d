"""
FastAPI Application Entry Point

This module initializes the FastAPI application and integrates:
- Database connections
- Appointment routes
- Error mapping for the scheduling core
- Lifecycle events
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from booking_core import __version__
from booking_core.api import appointments_router, booking_error_handler
from booking_core.config import settings
from booking_core.db.session import check_database_connection, close_database_connection
from booking_core.errors import BookingError

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ]
)
logger = logging.getLogger(__name__)

logger.info("=" * 60)
logger.info("Appointment Booking Core")
logger.info("=" * 60)
logger.info(f"Debug mode: {settings.debug}")
logger.info(f"Log level: {settings.log_level}")
logger.info(f"Database URL: {settings.database_url.split('@')[0]}@***")
logger.info(f"Currency: {settings.currency}")
logger.info("=" * 60)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Checks the database on startup and closes connections on shutdown.
    """
    logger.info("Starting application...")

    db_healthy = await check_database_connection()
    if db_healthy:
        logger.info("Database connection verified")
    else:
        logger.error("Database connection failed!")
        logger.warning("Application will start but database operations will fail")

    yield

    logger.info("Shutting down application...")
    try:
        await close_database_connection()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error(f"Error during shutdown: {e}", exc_info=True)


app = FastAPI(
    title="Appointment Booking Core",
    description=(
        "Multi-tenant appointment scheduling: entity validation, "
        "conflict detection and transactional booking for service businesses."
    ),
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(BookingError, booking_error_handler)


@app.get("/health")
async def health_check():
    """
    Application health check endpoint.

    Returns:
        JSONResponse with API and database status
    """
    db_healthy = await check_database_connection()

    return JSONResponse(
        status_code=200 if db_healthy else 503,
        content={
            "status": "healthy" if db_healthy else "degraded",
            "api": "operational",
            "database": "connected" if db_healthy else "disconnected",
            "version": __version__,
        },
    )


@app.get("/info")
async def app_info():
    return {
        "name": "Appointment Booking Core",
        "version": __version__,
        "environment": "development" if settings.debug else "production",
        "currency": settings.currency,
        "capabilities": [
            "Appointment booking with conflict detection",
            "Appointment updates and rescheduling",
            "Appointment cancellation",
            "Status tracking",
        ],
    }


app.include_router(appointments_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "booking_core.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
