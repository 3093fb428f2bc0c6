"""FastAPI application."""

from typing import Optional

from dishka import AsyncContainer
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fines.config import Settings
from fines.interface.api.routes import comments, health
from fines.util.di.container import create_container, setup_di
from fines.util.observability import instrument_fastapi


def create_app(
    container: Optional[AsyncContainer] = None,
    settings: Optional[Settings] = None,
    instrument: bool = True,
) -> FastAPI:
    """Create FastAPI application.

    Logfire should be configured before calling this function
    (scripts/start_app.py does this).

    Args:
        container: DI container (defaults to the production container)
        settings: Application settings (defaults to environment)
        instrument: Trace requests with Logfire

    Returns:
        Configured application
    """
    settings = settings or Settings()

    app_instance = FastAPI(
        title="Fines Comments API",
        description="Threaded comments on fines",
        version="0.1.0",
    )

    if instrument:
        instrument_fastapi(app_instance)

    app_instance.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Origin", "X-User-Id"],
        max_age=600,  # Cache preflight requests for 10 minutes
    )

    setup_di(app_instance, container or create_container())

    app_instance.include_router(health.router)
    app_instance.include_router(comments.router)

    return app_instance
