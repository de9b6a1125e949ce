"""Upstream backend configuration and utilities."""

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import httpx

from .exceptions import ConfigurationError

logger = logging.getLogger("msgbridge")

DEFAULT_TIMEOUT = 60.0
DEFAULT_BASE_URL = "https://api.openai.com/v1"


@dataclass
class Backend:
    """The OpenAI-compatible upstream every request is dispatched to."""

    base_url: str
    api_key: str = ""
    timeout: Optional[float] = DEFAULT_TIMEOUT
    model_map: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "Backend":
        """Build a backend from the ``upstream`` section of the config."""
        upstream = config.get("upstream") or {}
        if not isinstance(upstream, Mapping):
            raise ConfigurationError("'upstream' must be a mapping")

        base_url = str(upstream.get("base_url") or DEFAULT_BASE_URL).strip()
        api_key = str(upstream.get("api_key") or "").strip()
        # An unresolved ${VAR} placeholder means no key was configured.
        if api_key.startswith("$"):
            logger.warning("Upstream api_key placeholder %s is unresolved; using caller keys", api_key)
            api_key = ""

        raw_timeout = upstream.get("timeout", DEFAULT_TIMEOUT)
        try:
            timeout: Optional[float] = float(raw_timeout) if raw_timeout is not None else None
        except (TypeError, ValueError):
            raise ConfigurationError(f"Invalid upstream timeout: {raw_timeout!r}")

        model_map = upstream.get("model_map") or {}
        if not isinstance(model_map, Mapping):
            raise ConfigurationError("'upstream.model_map' must be a mapping")

        return cls(
            base_url=base_url,
            api_key=api_key,
            timeout=timeout,
            model_map={str(k): str(v) for k, v in model_map.items()},
        )

    def build_url(self, path: str) -> str:
        """Build the full URL for an upstream request."""
        base = self.base_url.rstrip("/")
        normalized_path = path or ""
        if not normalized_path.startswith("/"):
            normalized_path = f"/{normalized_path}"
        return f"{base}{normalized_path}"

    def resolve_model(self, model_name: str) -> str:
        """Rewrite a requested model name to the upstream model, if mapped."""
        target = self.model_map.get(model_name)
        if target:
            logger.debug("Rewrote model %s to %s", model_name, target)
            return target
        return model_name


def build_outbound_headers(api_key: str) -> dict[str, str]:
    """Build headers for outbound requests to the upstream."""
    headers = {
        "Content-Type": "application/json",
        # Explicitly request uncompressed responses
        "Accept-Encoding": "identity",
    }
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


def extract_caller_api_key(headers: Mapping[str, str]) -> str:
    """Pull the caller's key from ``x-api-key`` or ``Authorization: Bearer``."""
    api_key = headers.get("x-api-key")
    if api_key:
        return api_key.strip()
    authorization = headers.get("authorization") or ""
    if authorization.lower().startswith("bearer "):
        return authorization[len("bearer "):].strip()
    return ""


def format_httpx_error(exc: Any, backend: Backend, url: Optional[str] = None) -> str:
    """Produce a detailed, user-facing description of an httpx error."""
    parts = [exc.__class__.__name__]
    message = str(exc).strip()
    if message:
        parts.append(message)

    try:
        request = exc.request
    except (AttributeError, RuntimeError):
        # httpx raises RuntimeError when no request is attached
        request = None
    if request is not None:
        parts.append(f"request={request.method} {request.url}")
    elif url:
        parts.append(f"url={url}")

    if isinstance(exc, httpx.TimeoutException):
        timeout = backend.timeout or DEFAULT_TIMEOUT
        parts.append(f"timeout={timeout}s")

    return "; ".join(parts)
