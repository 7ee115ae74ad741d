"""
GeoPulse API

FastAPI application serving the GEO endpoints.

Run locally:
    uvicorn api.main:app --reload
"""

import logging
import sys
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from geopulse import __version__
from geopulse.database import check_db_connection, init_db
from geopulse.utils.config import get_settings

from api.geo import router as geo_router

# Configure logging to stdout (platform log collectors treat stderr as errors)
logging.basicConfig(
    level=getattr(logging, get_settings().LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
    force=True,
)
logger = logging.getLogger(__name__)

# Quiet down chatty loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("anthropic").setLevel(logging.WARNING)

app = FastAPI(
    title="GeoPulse",
    description="AI citation momentum, next-best-action and visibility tracking",
    version=__version__,
)
app.include_router(geo_router)


# ============================================================================
# STARTUP - Initialize Database
# ============================================================================

@app.on_event("startup")
async def startup_event():
    """Initialize database on startup."""
    logger.info("Initializing database...")
    try:
        init_db()
        if check_db_connection():
            logger.info("Database connection verified")
        else:
            logger.warning("Database connection check failed - continuing anyway")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Server error"})


@app.get("/health")
async def health():
    """Health check including database status."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
        "database": "connected" if check_db_connection() else "disconnected",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
