"""Application factory for the gradekit FastAPI app.

Builds the app (metadata, lifespan, middleware, handlers, routers) in one
place so tests can create isolated instances with their own settings.
"""

from __future__ import annotations

from fastapi import FastAPI

from gradekit.api.routes import (
    cache_router,
    github_router,
    health_router,
    rate_limits_router,
)
from gradekit.core.config import Settings, settings
from gradekit.core.exception_handlers import setup_exception_handlers
from gradekit.core.lifespan import build_lifespan
from gradekit.core.logging import configure_logging
from gradekit.core.middleware import request_id_middleware
from gradekit.core.openapi import TAGS_METADATA, apply_openapi_customizations


def create_app(config: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        config: Settings for logging, the in-memory stores, operation
            budgets and cache TTLs; defaults to the global settings. Routes
            read it back through ``get_settings``.

    Returns:
        Configured FastAPI app. The rate limiter and cache are created when
        its lifespan starts.
    """
    cfg = config or settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log, debug=cfg.app.debug)

    app = FastAPI(
        title="gradekit",
        description=(
            "Request guards for the course grading platform: per-user fixed-window "
            "rate limits for submissions, uploads, GitHub fetches and website tests, "
            "and a TTL cache for results of expensive external lookups. "
            "Requires X-API-Key; the caller is identified by X-User-ID."
        ),
        version="0.1.0",
        openapi_tags=TAGS_METADATA,
        lifespan=build_lifespan(cfg),
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )
    app.state.settings = cfg

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(rate_limits_router, prefix="/v1")
    app.include_router(cache_router, prefix="/v1")
    app.include_router(github_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
