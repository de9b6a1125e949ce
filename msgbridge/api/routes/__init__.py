"""API routes for the gateway."""

from .messages import messages_endpoint
from .usage import router as usage_router

__all__ = [
    "messages_endpoint",
    "usage_router",
]
