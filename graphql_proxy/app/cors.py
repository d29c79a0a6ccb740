"""
CORS Middleware
===============

Permissive cross-origin wrapper around the whole application.

Every HTTP response, including an unhandled 500, gets
Access-Control-Allow-Origin/Methods/Headers. Any
OPTIONS request is treated as a preflight and answered 200 with an empty
body without reaching the router, so it never touches the upstream.

Usage:
------
    app.add_middleware(
        PermissiveCORSMiddleware,
        allow_origins=["*"],
        allow_methods="GET, POST, OPTIONS",
        allow_headers="Content-Type, Authorization",
    )
"""

import logging
from typing import Dict, Optional, Sequence

from starlette.datastructures import Headers, MutableHeaders
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class PermissiveCORSMiddleware:
    """
    ASGI middleware injecting CORS headers and short-circuiting preflights.

    Attributes:
        allow_all_origins: True when "*" is among the configured origins
        allow_origins: Explicit origins echoed back when they match
        allow_methods: Access-Control-Allow-Methods value
        allow_headers: Access-Control-Allow-Headers value
    """

    def __init__(
        self,
        app: ASGIApp,
        allow_origins: Sequence[str] = ("*",),
        allow_methods: str = "GET, POST, OPTIONS",
        allow_headers: str = "Content-Type, Authorization",
    ) -> None:
        self.app = app
        self.allow_all_origins = "*" in allow_origins
        self.allow_origins = [origin for origin in allow_origins if origin != "*"]
        self.allow_methods = allow_methods
        self.allow_headers = allow_headers

    def cors_headers(self, origin: Optional[str]) -> Dict[str, str]:
        """
        Build the CORS headers for a request from the given Origin.

        Args:
            origin: Value of the request's Origin header, if any

        Returns:
            Headers to set on the response
        """
        headers = {
            "Access-Control-Allow-Methods": self.allow_methods,
            "Access-Control-Allow-Headers": self.allow_headers,
        }

        if self.allow_all_origins:
            headers["Access-Control-Allow-Origin"] = "*"
        elif origin and origin in self.allow_origins:
            headers["Access-Control-Allow-Origin"] = origin

        return headers

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        origin = Headers(scope=scope).get("origin")
        cors_headers = self.cors_headers(origin)
        echo_origin = "Access-Control-Allow-Origin" in cors_headers and not self.allow_all_origins

        if scope["method"] == "OPTIONS":
            logger.debug("Answered preflight request", extra={"path": scope.get("path"), "origin": origin})
            response = Response(status_code=200, headers=cors_headers)
            if echo_origin:
                response.headers.add_vary_header("Origin")
            await response(scope, receive, send)
            return

        response_started = False

        async def send_with_cors(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
                headers = MutableHeaders(scope=message)
                headers.update(cors_headers)
                if echo_origin:
                    headers.add_vary_header("Origin")
            await send(message)

        try:
            await self.app(scope, receive, send_with_cors)
        except Exception:
            # Unhandled errors surface outside this middleware; answer the
            # 500 here so it still carries CORS headers, then let the app's
            # exception handler log it.
            if not response_started:
                response = PlainTextResponse(
                    "Internal server error",
                    status_code=500,
                    headers=cors_headers,
                )
                if echo_origin:
                    response.headers.add_vary_header("Origin")
                await response(scope, receive, send)
            raise
