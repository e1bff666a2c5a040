"""
Main entrypoint for the RSVP Collector service.

This module assembles the FastAPI application: it sets up logging,
picks the storage backend, registers the error handlers, includes the
API router and serves the static front-end.  ``create_app`` builds and
configures the app, which is then instantiated at module import time as
``app``, e.g.::

    uvicorn rsvp_collector.app.main:app --reload
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.responses import (
    UTF8JSONResponse,
    http_exception_handler,
    unhandled_exception_handler,
)
from .api.router import router as api_router
from .core.config import Settings, settings
from .core.logging_config import setup_logging
from .services.rsvp_service import RsvpService
from .storage import create_backend

logger = logging.getLogger(__name__)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    app_settings : Optional[Settings]
        Settings to use instead of the module-level ``settings``.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.  Storage is
        initialised when the application starts.
    """
    app_settings = app_settings or settings
    # Initialise logging before anything else so that the setup below
    # can log.
    setup_logging(app_settings.log_level, app_settings.log_file or None)

    backend = create_backend(app_settings)

    app = FastAPI(
        title=app_settings.project_name,
        version=app_settings.api_version,
        default_response_class=UTF8JSONResponse,
    )
    app.state.settings = app_settings
    app.state.rsvp_service = RsvpService(backend)

    if app_settings.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(api_router, prefix="/api")

    # The static mount matches every path, so it must come after the API.
    static_path = app_settings.resolve_path(app_settings.static_dir)
    if static_path.is_dir():
        app.mount("/", StaticFiles(directory=static_path, html=True), name="static")
    else:
        logger.warning("Static directory %s not found; front-end disabled", static_path)

    @app.on_event("startup")
    async def startup_event() -> None:
        backend.initialize()
        logger.info(
            "RSVP server ready on http://%s:%s", app_settings.host, app_settings.port
        )

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
