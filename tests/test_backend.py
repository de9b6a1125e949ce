"""Tests for backend configuration helpers."""

import sys
from pathlib import Path

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from msgbridge.core.backend import (
    DEFAULT_BASE_URL,
    Backend,
    build_outbound_headers,
    extract_caller_api_key,
    format_httpx_error,
)
from msgbridge.core.exceptions import ConfigurationError


class TestBackendFromConfig:
    def test_full_section(self):
        """Test every upstream key is read."""
        backend = Backend.from_config({
            "upstream": {
                "base_url": "http://localhost:9000/v1/",
                "api_key": "sk-1",
                "timeout": "30",
                "model_map": {"claude": "gpt-4o"},
            }
        })

        assert backend.base_url == "http://localhost:9000/v1/"
        assert backend.api_key == "sk-1"
        assert backend.timeout == 30.0
        assert backend.model_map == {"claude": "gpt-4o"}

    def test_defaults(self):
        """Test an empty config falls back to defaults."""
        backend = Backend.from_config({})

        assert backend.base_url == DEFAULT_BASE_URL
        assert backend.api_key == ""
        assert backend.model_map == {}

    def test_unresolved_key_placeholder_is_dropped(self):
        """Test an unsubstituted ${VAR} key counts as no key."""
        backend = Backend.from_config({"upstream": {"api_key": "${OPENAI_API_KEY}"}})

        assert backend.api_key == ""

    def test_invalid_timeout(self):
        """Test a non-numeric timeout is a configuration error."""
        with pytest.raises(ConfigurationError):
            Backend.from_config({"upstream": {"timeout": "soon"}})

    def test_invalid_section(self):
        """Test non-mapping upstream and model_map sections are rejected."""
        with pytest.raises(ConfigurationError):
            Backend.from_config({"upstream": ["x"]})
        with pytest.raises(ConfigurationError):
            Backend.from_config({"upstream": {"model_map": ["x"]}})


class TestBackendHelpers:
    def test_build_url_joins_cleanly(self):
        """Test trailing and leading slashes don't double up."""
        backend = Backend(base_url="http://host/v1/")

        assert backend.build_url("/chat/completions") == "http://host/v1/chat/completions"
        assert backend.build_url("chat/completions") == "http://host/v1/chat/completions"

    def test_resolve_model(self):
        """Test mapped names are rewritten and others pass through."""
        backend = Backend(base_url="http://host", model_map={"claude-3": "gpt-4o"})

        assert backend.resolve_model("claude-3") == "gpt-4o"
        assert backend.resolve_model("gpt-4o-mini") == "gpt-4o-mini"

    def test_outbound_headers(self):
        """Test the bearer header is set only when a key exists."""
        assert build_outbound_headers("sk")["Authorization"] == "Bearer sk"
        assert "Authorization" not in build_outbound_headers("")

    def test_extract_caller_api_key(self):
        """Test x-api-key wins, then Authorization: Bearer."""
        assert extract_caller_api_key({"x-api-key": " k1 "}) == "k1"
        assert extract_caller_api_key({"authorization": "Bearer k2"}) == "k2"
        assert extract_caller_api_key({"authorization": "Basic abc"}) == ""
        assert extract_caller_api_key({}) == ""

    def test_format_timeout_error(self):
        """Test timeout errors carry the request and the configured timeout."""
        backend = Backend(base_url="http://host", timeout=5.0)
        request = httpx.Request("POST", "http://host/chat/completions")
        exc = httpx.ReadTimeout("timed out", request=request)

        detail = format_httpx_error(exc, backend)

        assert detail.startswith("ReadTimeout; timed out")
        assert "request=POST http://host/chat/completions" in detail
        assert detail.endswith("timeout=5.0s")

    def test_format_error_without_request(self):
        """Test errors lacking a request fall back to the given URL."""
        backend = Backend(base_url="http://host")
        exc = httpx.ConnectError("refused")

        detail = format_httpx_error(exc, backend, "http://host/x")

        assert detail == "ConnectError; refused; url=http://host/x"
