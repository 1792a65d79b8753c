"""
Main FastAPI application entry point.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from endpoint_firewall.api.v1.router import build_api_router
from endpoint_firewall.core.config import settings
from endpoint_firewall.core.logging_config import setup_logging
from endpoint_firewall.firewall.engine import Firewall
from endpoint_firewall.firewall.loader import build_firewall
from endpoint_firewall.middleware.firewall import FirewallMiddleware
from endpoint_firewall.middleware.request_logging import RequestLoggingMiddleware

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    firewall: Firewall = app.state.firewall
    logger.info(
        f"Starting up {settings.APP_NAME} with {len(firewall.paths())} guarded path(s) "
        f"(fail_open={firewall.fail_open})"
    )
    yield
    logger.info(f"Shutting down {settings.APP_NAME}...")


def create_app(firewall: Optional[Firewall] = None, guard_all: bool = False) -> FastAPI:
    """
    Build the application around a firewall.

    Rules must all be registered before the app starts serving. Without a firewall one
    is built from settings, so a bad rule fails here rather than at request time.

    Args:
        firewall: Pre-configured firewall; built from settings when omitted
        guard_all: Also apply the firewall to every route, including /health
    """
    if firewall is None:
        firewall = build_firewall(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        description="Per-path network whitelisting for HTTP endpoints",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.firewall = firewall

    # Added first so request logging wraps the firewall and sees its 403s
    if guard_all:
        app.add_middleware(FirewallMiddleware, firewall=firewall)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(build_api_router(firewall))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unhandled errors with trace_id."""
        trace_id = getattr(request.state, "trace_id", str(uuid.uuid4()))

        logger.error(
            f"[{trace_id}] Unhandled exception: {type(exc).__name__}: {exc}",
            exc_info=True
        )

        return JSONResponse(
            status_code=500,
            content={
                "detail": str(exc) if settings.DEBUG else "Internal Server Error",
                "trace_id": trace_id,
                "error": type(exc).__name__,
            },
        )

    return app


app = create_app()
