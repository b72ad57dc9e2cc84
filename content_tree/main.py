import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .db import get_db_client, init_db
from .middleware import LoggingMiddleware
from .routers.content import router as content_router
from .routers.navigation import router as navigation_router

logger = logging.getLogger(__name__)


# Lifespan context manager for startup and shutdown events
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("Initializing database connection...")
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        # Endpoints retry through the ensure_db dependency
        logger.warning(f"Database initialization warning: {e}")

    yield  # App runs here

    logger.info("Shutting down")


app = FastAPI(
    title="Content Tree API",
    description="Exam, subject, unit, chapter, topic and subtopic hierarchy",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(LoggingMiddleware)


# Health check endpoints (registered before the /api/v1/{level} routes)
@app.get("/")
async def root():
    return {"message": "Content Tree API is running!", "status": "healthy"}


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "content-tree-api"}


@app.get("/api/v1/db-health")
async def db_health_check():
    """Check MongoDB connection health"""
    try:
        start_time = datetime.now()
        client = await get_db_client()
        await client.admin.command("ping")
        ping_time = (datetime.now() - start_time).total_seconds() * 1000
        return {
            "status": "connected",
            "timing": {"ping_ms": round(ping_time, 2)},
            "server_time": datetime.now().isoformat(),
        }
    except Exception as e:
        logger.error(f"DB health check failed: {e}")
        return {
            "status": "error",
            "error": str(e),
            "error_type": type(e).__name__,
            "server_time": datetime.now().isoformat(),
        }


# Include routers; navigation paths must match before the generic level routes
app.include_router(navigation_router)
app.include_router(content_router)
