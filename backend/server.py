"""
Use Case Document Generator - FastAPI Application Entry Point

Registers the routers, configures middleware, and manages the lifetime of
the storage connection and the headless browser.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from config import CORS_ORIGINS, STORAGE_BACKEND
from middleware.rate_limit import RateLimitMiddleware
from services.screenshot_service import ScreenshotError, screenshot_service

from routes.use_cases import use_cases_router
from routes.assist import assist_router
from routes.wireframes import wireframes_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Application lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting use case generator backend...")
    if STORAGE_BACKEND == "mongo":
        from database import create_indexes
        await create_indexes()

    try:
        await screenshot_service.initialize()
    except ScreenshotError as e:
        # Wireframe rendering stays unavailable; documents are generated without images
        logger.warning(f"Screenshot service unavailable: {e}")

    logger.info("Use case generator backend is ready.")
    yield
    logger.info("Shutting down use case generator backend...")
    await screenshot_service.close()
    if STORAGE_BACKEND == "mongo":
        from database import close_connection
        await close_connection()
        logger.info("Database connection closed.")


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Use Case Generator API",
    description="Generates use-case specification documents (.docx) from structured form data",
    version="1.0.0",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RateLimitMiddleware)

# ---------------------------------------------------------------------------
# Register routers
# ---------------------------------------------------------------------------

app.include_router(use_cases_router)
app.include_router(assist_router)
app.include_router(wireframes_router)

# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/api/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "Use Case Generator API",
        "version": "1.0.0",
        "screenshots": screenshot_service.is_ready,
    }


@app.get("/api/")
async def api_root():
    return {
        "service": "Use Case Generator API",
        "version": "1.0.0",
        "documentation": "/docs",
        "health": "/api/health",
    }
