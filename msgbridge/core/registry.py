"""Upstream registry for breaking circular imports.

Holds the upstream client so that routes can reach it without importing the
application module.
"""

from typing import Optional

from .upstream import OpenAIUpstream

# Global upstream instance - set by main.create_app during initialization
upstream: Optional[OpenAIUpstream] = None


def set_upstream(upstream_instance: OpenAIUpstream) -> None:
    """Set the global upstream instance."""
    global upstream
    upstream = upstream_instance


def get_upstream() -> OpenAIUpstream:
    """Get the global upstream instance."""
    if upstream is None:
        raise RuntimeError("Upstream not initialized. Did you call set_upstream?")
    return upstream
