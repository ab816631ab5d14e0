"""
Application factory for FastAPI.

This module provides a factory function for creating FastAPI application instances.
The factory pattern allows for:
- Easy testing with custom settings
- Multiple app instances with different configurations
- Clear separation of app creation from route definitions

Usage:
    from backend.main import create_app
    from backend.settings import Settings

    # Default app (uses get_settings())
    app = create_app()

    # Test app with custom settings
    test_settings = Settings(environment="test", _env_file=None)
    test_app = create_app(settings=test_settings)
"""

import logging
from typing import Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure a FastAPI application instance.

    Args:
        settings: Optional Settings instance. If not provided, uses get_settings()
                  which loads from environment variables.

    Returns:
        Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    _init_sentry(settings)

    app = FastAPI(
        title="AmakaFlow Progress API",
        description="Program progress tracking, validation and repair API",
        version="1.0.0",
    )

    _configure_cors(app, settings)
    _include_routers(app)
    _log_feature_flags(settings)

    return app


def _init_sentry(settings: Settings) -> None:
    """Initialize Sentry SDK if DSN is configured."""
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=0.1,
            profiles_sample_rate=0.1,
        )
        logger.info("Sentry initialized for progress-api")


def _configure_cors(app: FastAPI, settings: Settings) -> None:
    """Configure CORS middleware for the application."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _include_routers(app: FastAPI) -> None:
    """Include all API routers in the application."""
    from api.routers import (
        completions_router,
        health_router,
        programs_router,
        progress_router,
    )

    # Health router (no prefix - /health at root)
    app.include_router(health_router)

    app.include_router(programs_router)
    app.include_router(progress_router)
    app.include_router(completions_router)


def _log_feature_flags(settings: Settings) -> None:
    """Log which integrations are configured at startup."""
    if settings.supabase_url and settings.supabase_key:
        logger.info("Supabase configured")
    else:
        logger.warning("Supabase not configured - progress endpoints will return 503")

    if not settings.sentry_dsn:
        logger.info("Sentry disabled (no SENTRY_DSN)")

    auth_modes = ["hs256"]
    if settings.clerk_domain:
        auth_modes.append("clerk")
    if settings.api_keys_list:
        auth_modes.append("api_key")
    logger.info(f"Auth modes enabled: {', '.join(auth_modes)}")

    logger.info(
        f"Sync retry defaults: max_attempts={settings.retry_max_attempts}, "
        f"base_delay={settings.retry_base_delay_seconds}s, "
        f"max_delay={settings.retry_max_delay_seconds}s"
    )


# Default app instance for uvicorn
# This allows: uvicorn backend.main:app --reload
app = create_app()
