"""
FastAPI Proxy Application Factory
==================================

This is the main entry point for the proxy service that sits between the
browser profile page and the upstream platform API.

Architecture:
    Browser → CORS wrapper → Proxy (this service) → Upstream auth / GraphQL API

Routes:
    - POST /api/auth/signin : Sign-in forwarded to the upstream auth endpoint
    - POST /api/graphql     : GraphQL payload forwarded to the upstream GraphQL endpoint
    - OPTIONS (any path)    : Answered by the CORS wrapper, never forwarded

Environment Variables (all optional):
    - UPSTREAM_AUTH_URL: Upstream sign-in endpoint
    - UPSTREAM_GRAPHQL_URL: Upstream GraphQL endpoint
    - UPSTREAM_TIMEOUT_SECONDS / UPSTREAM_CONNECT_TIMEOUT_SECONDS: Outbound timeouts
    - PROXY_HOST / PROXY_PORT: Listener address (default 0.0.0.0:8080)
    - ALLOWED_ORIGINS: Comma-separated CORS origins (default "*")
    - LOG_LEVEL: Logging level (default: INFO)

Running the Service:
    graphql-proxy

    Or through uvicorn directly:
        uvicorn graphql_proxy.app.main:app --host 0.0.0.0 --port 8080
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings, validate_configuration
from .cors import PermissiveCORSMiddleware
from .proxy import proxy_router

logger = logging.getLogger("graphql_proxy.main")


# Configure structured JSON logging
def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


class AppState:
    """
    Per-application state container.

    Holds the settings the app was built with and the shared outbound
    client, which is created lazily on the first forwarded request.
    """
    def __init__(self, settings: Settings):
        self.settings: Settings = settings
        self.upstream_client: Optional[httpx.AsyncClient] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup: configure logging, log the banner and any configuration warnings.
    Shutdown: close the shared upstream client if one was created.
    """
    app_state: AppState = app.state.app_state
    settings = app_state.settings

    setup_logging(settings.LOG_LEVEL)

    logger.info(f"Starting proxy server on http://localhost:{settings.PROXY_PORT}")
    logger.info(f"Proxying to: {settings.upstream_origin}")

    for warning in validate_configuration(settings)["warnings"]:
        logger.warning(warning)

    yield

    logger.info("Shutting down proxy service")

    if app_state.upstream_client is not None:
        await app_state.upstream_client.aclose()
        logger.info("Closed shared upstream HTTP client")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application instance with:
        - Lifespan management
        - Proxy routes
        - Plain-text error responses
        - CORS wrapper

    Args:
        settings: Settings to use; loaded from the environment when omitted

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()

    # Only the two proxy paths are served
    app = FastAPI(
        title="GraphQL Proxy",
        description="Sign-in and GraphQL forwarding proxy with CORS",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.app_state = AppState(settings)

    app.include_router(proxy_router, tags=["Upstream Proxy"])

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
        """
        Render every HTTP error as a plain-text body.

        Covers errors raised by the proxy routes and the router's own
        404/405 responses.
        """
        return PlainTextResponse(
            str(exc.detail),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
        """
        Global exception handler for unhandled errors.

        Logs the error; the request fails with 500 and the process keeps serving.
        """
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )

        return PlainTextResponse("Internal server error", status_code=500)

    app.add_middleware(
        PermissiveCORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )

    return app


def run(settings: Optional[Settings] = None) -> None:
    """
    Start the blocking listener.

    A bind failure is fatal: it is logged and the process exits non-zero.
    """
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    try:
        uvicorn.run(
            create_app(settings),
            host=settings.PROXY_HOST,
            port=settings.PROXY_PORT,
            log_level=settings.LOG_LEVEL.lower(),
        )
    except OSError as e:
        logger.critical(f"Server failed to start: {e}")
        sys.exit(1)
    except SystemExit as e:
        # uvicorn exits with status 1 when the socket cannot be bound
        if e.code:
            logger.critical(
                f"Server failed to start on {settings.PROXY_HOST}:{settings.PROXY_PORT}"
            )
        raise


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    run()
