"""Sign-in and GraphQL forwarding proxy with a permissive CORS wrapper."""

__version__ = "1.0.0"
