"""
Data Models Module

Pydantic models shared by the proxy routes. The proxy keeps no persistent
data; the only model describes how an inbound path maps onto an upstream.
"""

from pydantic import BaseModel, ConfigDict, Field

from .config import Settings


# ============================================================================
# Forwarding Models
# ============================================================================

class UpstreamRoute(BaseModel):
    """One forwarding binding: where a proxied path goes and what it carries."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Upstream service name used in logs and error messages")
    url: str = Field(..., description="Absolute upstream URL the request is sent to")
    forward_body: bool = Field(
        default=False,
        description="Forward the inbound body byte-for-byte; otherwise the outbound body is empty",
    )


def auth_route(settings: Settings) -> UpstreamRoute:
    """Binding for /api/auth/signin: Authorization only, no body."""
    return UpstreamRoute(
        name="authentication",
        url=settings.upstream_auth_url_str,
        forward_body=False,
    )


def graphql_route(settings: Settings) -> UpstreamRoute:
    """Binding for /api/graphql: Authorization plus the raw JSON body."""
    return UpstreamRoute(
        name="GraphQL",
        url=settings.upstream_graphql_url_str,
        forward_body=True,
    )
