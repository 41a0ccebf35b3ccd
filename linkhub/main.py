"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- API routes (analytics, link management, redirects)
- Middleware (logging, CORS)
- Startup/shutdown of the database schema and the visitor classifier

Design Decisions:
- Clean separation: Routes, middleware, and app config are separate
- The redirect router is included last so GET /{short_code} never shadows
  another route
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from linkhub.api import analytics, endpoints
from linkhub.core.classifier_manager import initialize_classifier, shutdown_classifier
from linkhub.core.setting import EnvSettingsOptions, settings
from linkhub.db.session import init_db
from linkhub.middleware.logging import add_logging_middleware

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

IS_PRODUCTION = settings.ENV_SETTING == EnvSettingsOptions.production

# Initialize FastAPI application
# Title and description are used in auto-generated API documentation
app = FastAPI(
    title="LinkHub Service",
    description="Short links, link collections and click analytics built with FastAPI",
    version="1.0.0",
    docs_url=None if IS_PRODUCTION else "/docs",  # Swagger UI documentation
    redoc_url=None if IS_PRODUCTION else "/redoc",  # ReDoc documentation
)

add_logging_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health endpoints defined before router to match before catch-all route
@app.get("/", tags=["Health"])
async def root():
    """
    Root endpoint for health checks.

    Returns:
        Simple JSON response indicating service is running
    """
    return {
        "message": "LinkHub Service",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint for monitoring.

    Returns:
        Health status of the service
    """
    return {"status": "healthy"}


app.include_router(analytics.router, tags=["Analytics"])
app.include_router(endpoints.router, tags=["Links"])


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    if settings.CREATE_TABLES_ON_STARTUP:
        await init_db()
    initialize_classifier()


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    shutdown_classifier()
