"""Core exceptions for the gateway."""

from typing import Optional


class ProxyError(Exception):
    """Base exception for gateway errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(ProxyError):
    """Raised when there's an issue with the configuration."""
    pass


class InvalidRequestError(ProxyError):
    """Raised when an incoming request is invalid."""

    def __init__(self, message: str, code: str = "invalid_request", param: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code
        self.param = param


class UpstreamError(ProxyError):
    """Raised when the upstream Chat Completions call fails."""
    pass


class UpstreamHTTPError(UpstreamError):
    """The upstream answered with a non-success HTTP status."""

    def __init__(self, message: str, status_code: int, body: bytes = b"") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class UpstreamStreamError(UpstreamError):
    """The upstream stream failed or reported an error mid-flight."""
    pass
