"""Main FastAPI application for the msgbridge gateway."""

import logging
import socket
from typing import Any, Mapping, Optional

import httpx
import uvicorn
from fastapi import FastAPI

from .api import messages_endpoint, usage_router
from .config_loader import get_log_level, get_server_settings, load_config
from .core import Backend, OpenAIUpstream
from .core.registry import set_upstream
from .logging import setup_logging, wait_for_pending_logs

logger = logging.getLogger("msgbridge")


def create_app(
    config: Optional[Mapping[str, Any]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Parsed configuration; loaded from disk when omitted.
        transport: Optional httpx transport for the upstream (in-process
            upstreams and tests).

    Returns:
        The configured FastAPI application instance.
    """
    if config is None:
        config = load_config()

    backend = Backend.from_config(config)
    set_upstream(OpenAIUpstream(backend, transport=transport))
    logger.info(f"Upstream configured: {backend.base_url}")

    app = FastAPI(title="msgbridge")

    @app.on_event("startup")
    async def startup_event():
        """Handle application startup."""
        host, port = get_server_settings(config)
        logger.info("msgbridge gateway starting up...")
        logger.info("Configured bind address %s:%s", host, port)
        if host == "0.0.0.0":
            hostname = socket.gethostname()
            logger.info("Reachable on local network at http://%s:%s", hostname, port)
        if backend.model_map:
            for source, target in backend.model_map.items():
                logger.info(f"  - {source} -> {target}")
        logger.info("msgbridge gateway ready to handle requests")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Handle application shutdown."""
        await wait_for_pending_logs()

    app.post("/v1/messages")(messages_endpoint)
    app.include_router(usage_router)

    return app


def run() -> None:
    """Console entry point: load config, set up logging and serve."""
    config = load_config()
    setup_logging(get_log_level(config))
    host, port = get_server_settings(config)
    uvicorn.run(create_app(config), host=host, port=port)


if __name__ == "__main__":
    run()
