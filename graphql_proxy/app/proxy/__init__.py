"""
Proxy Package
=============

This package implements the forwarding endpoints that relay browser
requests to the upstream sign-in and GraphQL services.

Main Components:
----------------
- routes.py: FastAPI router with the proxy endpoints (/api/auth/signin, /api/graphql)

Usage:
------
    from graphql_proxy.app.proxy import proxy_router
    app.include_router(proxy_router)
"""

from .routes import proxy_router

__all__ = ["proxy_router"]
