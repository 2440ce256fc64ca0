# src/heartline/main.py
"""Main entry point for the Heartline application."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from heartline.api.error_handlers import register_error_handlers
from heartline.api.v1 import (
    conversations_router,
    likes_router,
    matches_router,
    passes_router,
    users_router,
)
from heartline.core.observability import setup_logging
from heartline.core.settings import settings
from heartline.services.notifications import get_notification_client

setup_logging(settings.log_level, settings.log_format)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await get_notification_client().close()


# Initialize FastAPI app
app = FastAPI(
    title="Heartline API",
    description="Match and conversation lifecycle API",
    version=settings.app_version,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

register_error_handlers(app)

# Include API routers
app.include_router(likes_router, prefix="/api")
app.include_router(passes_router, prefix="/api")
app.include_router(matches_router, prefix="/api")
app.include_router(conversations_router, prefix="/api")
app.include_router(users_router, prefix="/api")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("heartline.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
