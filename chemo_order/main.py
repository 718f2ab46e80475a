"""
Main FastAPI application entry point.
Configures the application, middleware, and includes routers.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .config import settings
from .database import init_db, session_scope
from .auth.router import router as auth_router
from .catalog.router import router as catalog_router
from .patients.router import router as patients_router
from .orders.router import router as orders_router
from .notifications.router import router as notifications_router
from .share.router import router as share_router
from .realtime.router import router as realtime_router
from .realtime.channel import RealtimeChannel
from .share.cleanup import start_cleanup_scheduler
from .core.bootstrap import run_bootstrap
from .core.storage import ensure_public_dirs
from .core.middleware import setup_middlewares
from .exceptions import register_exception_handlers

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create database tables if they don't exist
init_db()
ensure_public_dirs()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Chemotherapy Order API...")
    app.state.channel = RealtimeChannel()

    with session_scope() as db:
        run_bootstrap(db)

    cleanup_task = start_cleanup_scheduler() if settings.cleanup_enabled else None
    try:
        yield
    finally:
        if cleanup_task:
            cleanup_task.cancel()
            try:
                await cleanup_task
            except asyncio.CancelledError:
                pass
        await app.state.channel.close()
        logger.info("Chemotherapy Order API stopped")


# Create FastAPI application
app = FastAPI(
    title="Chemotherapy Order API",
    description="API for ward chemotherapy orders, pharmacist review and notifications",
    version="1.0.0",
    lifespan=lifespan,
)

# Register exception handlers
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware
setup_middlewares(app)

# Include routers
app.include_router(auth_router)
app.include_router(catalog_router)
app.include_router(patients_router)
app.include_router(orders_router)
app.include_router(notifications_router)
app.include_router(share_router)
app.include_router(realtime_router)

# Attachments, shared images and their preview pages
app.mount("/public", StaticFiles(directory=settings.public_dir), name="public")

# Root endpoint
@app.get("/")
def root():
    """
    Root endpoint for API health check.
    
    Returns:
        dict: Welcome message and API version
    """
    return {"message": "Welcome to Chemotherapy Order API", "version": app.version}

# Health check endpoint
@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring.
    
    Returns:
        dict: Health status information
    """
    return {"status": "healthy", "database": "connected"}
