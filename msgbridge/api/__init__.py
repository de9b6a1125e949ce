"""API module for the gateway."""

from .routes import messages_endpoint, usage_router

__all__ = [
    "messages_endpoint",
    "usage_router",
]
