"""Innoflow Core FastAPI application - single user mode (no authentication)."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import get_settings
from ..database import init_db
from .routers import hierarchy, items, reports

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("innoflow-core")

logger.info("Starting Innoflow Core API (single user mode - no authentication)")

# Create FastAPI app
app = FastAPI(
    title="Innoflow Core API",
    description="Innovation pipeline tracking and org-chart planning",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware - Open for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(items.router, prefix="/api/v1/items")
app.include_router(reports.router, prefix="/api/v1/reports")
app.include_router(hierarchy.router, prefix="/api/v1/hierarchy")


@app.on_event("startup")
def on_startup() -> None:
    init_db()
    logger.info("Database ready")


@app.get("/")
def root():
    """Root endpoint with server info."""
    return {
        "name": "Innoflow Core API",
        "version": __version__,
        "mode": "single-user",
        "authentication": False,
        "docs": "/docs",
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "mode": "single-user"}
