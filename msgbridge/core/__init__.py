"""Core module initialization."""

from .backend import (
    Backend,
    build_outbound_headers,
    extract_caller_api_key,
    format_httpx_error,
)
from .exceptions import (
    ConfigurationError,
    InvalidRequestError,
    ProxyError,
    UpstreamError,
    UpstreamHTTPError,
    UpstreamStreamError,
)
from .sse import SSEDecoder, detect_sse_error_payload, encode_sse_event
from .upstream import OpenAIUpstream, UpstreamStream

__all__ = [
    "Backend",
    "ConfigurationError",
    "InvalidRequestError",
    "OpenAIUpstream",
    "ProxyError",
    "SSEDecoder",
    "UpstreamError",
    "UpstreamHTTPError",
    "UpstreamStream",
    "UpstreamStreamError",
    "build_outbound_headers",
    "detect_sse_error_payload",
    "encode_sse_event",
    "extract_caller_api_key",
    "format_httpx_error",
]
