"""
Proxy Routes - Upstream Request Forwarding
===========================================

This module implements the two forwarding endpoints. Each one relays the
caller's Authorization header (and, for GraphQL, the raw body) to a fixed
upstream endpoint and copies the upstream status and body back unchanged.

Forwarding Model:
-----------------
1. Only POST is routed; other methods are answered 405 by the router
2. A non-empty Authorization header is required (401 otherwise)
3. The outbound request always carries Content-Type: application/json
4. The upstream body is read fully into memory before anything is written
5. No retries; every failure ends the request with a single status code

Endpoints:
----------
- POST /api/auth/signin: Forward sign-in to the upstream auth endpoint
- POST /api/graphql: Forward a GraphQL payload to the upstream GraphQL endpoint
"""

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from starlette.requests import ClientDisconnect

from ..config import Settings
from ..models import UpstreamRoute, auth_route, graphql_route

logger = logging.getLogger(__name__)

# Create router
proxy_router = APIRouter(prefix="/api")


# ============================================================================
# Dependencies
# ============================================================================

async def require_authorization(request: Request) -> str:
    """
    Dependency returning the caller's Authorization header verbatim.

    The proxy does not interpret the credential; the upstream decides
    whether it is valid.

    Raises:
        HTTPException: 401 if the header is missing or empty
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
        )
    return auth_header


def get_proxy_settings(request: Request) -> Settings:
    """Dependency returning the settings the application was created with."""
    return request.app.state.app_state.settings


def build_upstream_client(settings: Settings) -> httpx.AsyncClient:
    """
    Create the shared outbound HTTP client.

    Args:
        settings: Application settings (timeouts)

    Returns:
        httpx.AsyncClient reused by every forwarded request
    """
    timeout = httpx.Timeout(
        settings.UPSTREAM_TIMEOUT_SECONDS,
        connect=settings.UPSTREAM_CONNECT_TIMEOUT_SECONDS,
    )
    return httpx.AsyncClient(timeout=timeout)


def get_upstream_client(request: Request) -> httpx.AsyncClient:
    """
    Dependency to get the upstream HTTP client from app state.

    The client is created on first use and then shared by all requests;
    the application lifespan closes it on shutdown.

    Returns:
        Shared httpx.AsyncClient
    """
    app_state = request.app.state.app_state

    if app_state.upstream_client is None:
        app_state.upstream_client = build_upstream_client(app_state.settings)
        logger.info("Created shared upstream HTTP client")

    return app_state.upstream_client


# ============================================================================
# Forwarding
# ============================================================================

async def forward(
    request: Request,
    route: UpstreamRoute,
    authorization: str,
    client: httpx.AsyncClient,
) -> Response:
    """
    Forward one inbound request to its upstream and relay the answer.

    Flow:
    1. Read the inbound body (only when the route forwards it)
    2. Build the outbound POST with Authorization and JSON content type
    3. Send it and read the whole upstream body
    4. Return upstream status and body unchanged as application/json

    Args:
        request: Inbound request
        route: Upstream binding for this path
        authorization: Authorization header to relay
        client: Shared outbound HTTP client

    Returns:
        Response carrying the upstream status code and body bytes

    Raises:
        HTTPException: 400 unreadable inbound body, 502 upstream unreachable,
            500 upstream body could not be read
    """
    body = None
    if route.forward_body:
        try:
            body = await request.body()
        except ClientDisconnect:
            logger.warning(
                f"Error reading {route.name} request body",
                extra={"path": request.url.path},
            )
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Failed to read request",
            )

    headers = {
        "Authorization": authorization,
        "Content-Type": "application/json",
    }

    try:
        outbound = client.build_request("POST", route.url, content=body, headers=headers)
        upstream_response = await client.send(outbound, stream=True)
    except (httpx.InvalidURL, httpx.RequestError) as e:
        logger.error(
            f"Error executing {route.name} request: {e}",
            extra={"upstream_url": route.url},
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to connect to {route.name} service",
        )

    try:
        content = await upstream_response.aread()
    except httpx.HTTPError as e:
        logger.error(
            f"Error reading {route.name} response: {e}",
            extra={"upstream_url": route.url, "status_code": upstream_response.status_code},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to read response",
        )
    finally:
        await upstream_response.aclose()

    logger.info(
        f"{route.name} request: status={upstream_response.status_code}, size={len(content)} bytes",
        extra={"status_code": upstream_response.status_code, "response_size": len(content)},
    )

    return Response(
        content=content,
        status_code=upstream_response.status_code,
        media_type="application/json",
    )


# ============================================================================
# Proxy Endpoints
# ============================================================================

@proxy_router.post("/auth/signin")
async def proxy_auth_signin(
    request: Request,
    authorization: str = Depends(require_authorization),
    client: httpx.AsyncClient = Depends(get_upstream_client),
    settings: Settings = Depends(get_proxy_settings),
) -> Response:
    """
    Proxy a sign-in request to the upstream authentication endpoint.

    The inbound body is ignored; the upstream only sees the Authorization
    header (typically Basic credentials) and answers with a token.
    """
    return await forward(request, auth_route(settings), authorization, client)


@proxy_router.post("/graphql")
async def proxy_graphql(
    request: Request,
    authorization: str = Depends(require_authorization),
    client: httpx.AsyncClient = Depends(get_upstream_client),
    settings: Settings = Depends(get_proxy_settings),
) -> Response:
    """
    Proxy a GraphQL query to the upstream GraphQL endpoint.

    The JSON payload is forwarded byte-for-byte without being parsed.
    """
    return await forward(request, graphql_route(settings), authorization, client)
