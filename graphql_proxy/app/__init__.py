"""
Proxy Application Package
=========================

FastAPI application that forwards browser sign-in and GraphQL requests to
a fixed upstream API.

Modules:
    - main: application factory, lifespan, logging setup and entry point
    - config: Pydantic settings loaded from the environment
    - cors: permissive CORS wrapper answering preflight requests
    - models: upstream route bindings
    - proxy: the forwarding endpoints
"""
