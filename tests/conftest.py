"""Pytest configuration and fixtures for testing."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

UPSTREAM_BASE_URL = "http://upstream.local/v1"


@pytest.fixture(autouse=True)
def disable_error_files():
    """Keep tests from writing error log files into the project tree."""
    from msgbridge.logging import set_error_files_enabled

    set_error_files_enabled(False)
    yield
    set_error_files_enabled(True)


# =============================================================================
# Builders
# =============================================================================


def build_config(
    base_url: str = UPSTREAM_BASE_URL,
    *,
    api_key: str = "test-key",
    model_map: Optional[dict[str, str]] = None,
) -> dict[str, Any]:
    """Build a gateway config pointing at a fake upstream."""
    return {
        "upstream": {
            "base_url": base_url,
            "api_key": api_key,
            "timeout": 5,
            "model_map": model_map or {},
        },
        "server": {"host": "127.0.0.1", "port": 8000},
    }


def build_anthropic_request(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "model": "claude-3-5-sonnet",
        "max_tokens": 256,
        "messages": [{"role": "user", "content": "Hello"}],
    }
    payload.update(overrides)
    return payload


def openai_chat_response(
    content: Optional[str] = "Hello!",
    *,
    tool_calls: Optional[list[dict[str, Any]]] = None,
    finish_reason: Optional[str] = "stop",
    usage: Optional[dict[str, int]] = None,
    response_id: str = "chatcmpl-test",
) -> dict[str, Any]:
    """Build a complete OpenAI Chat Completions response body."""
    message: dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls is not None:
        message["tool_calls"] = tool_calls
    body: dict[str, Any] = {
        "id": response_id,
        "object": "chat.completion",
        "model": "gpt-4o",
        "choices": [{"index": 0, "message": message, "finish_reason": finish_reason}],
    }
    if usage is not None:
        body["usage"] = usage
    return body


def text_chunk(text: str) -> dict[str, Any]:
    return {"choices": [{"index": 0, "delta": {"content": text}}]}


def tool_chunk(
    index: int,
    *,
    tool_id: Optional[str] = None,
    name: Optional[str] = None,
    arguments: Optional[str] = None,
) -> dict[str, Any]:
    fragment: dict[str, Any] = {"index": index}
    if tool_id is not None:
        fragment["id"] = tool_id
        fragment["type"] = "function"
    function: dict[str, Any] = {}
    if name is not None:
        function["name"] = name
    if arguments is not None:
        function["arguments"] = arguments
    if function:
        fragment["function"] = function
    return {"choices": [{"index": 0, "delta": {"tool_calls": [fragment]}}]}


def finish_chunk(reason: str = "stop") -> dict[str, Any]:
    return {"choices": [{"index": 0, "delta": {}, "finish_reason": reason}]}


def sse_body(chunks: list[Any], *, add_done: bool = True) -> bytes:
    """Encode chunks as an OpenAI-style SSE body."""
    parts = [f"data: {json.dumps(chunk)}\n\n" for chunk in chunks]
    if add_done:
        parts.append("data: [DONE]\n\n")
    return "".join(parts).encode("utf-8")


def parse_sse_frames(raw: str) -> list[dict[str, Any]]:
    """Parse Anthropic SSE text into [{"event": ..., "data": {...}}]."""
    events = []
    for block in raw.split("\n\n"):
        lines = [line for line in block.split("\n") if line]
        event_line = next((line for line in lines if line.startswith("event: ")), None)
        data_line = next((line for line in lines if line.startswith("data: ")), None)
        if event_line and data_line:
            events.append({
                "event": event_line[len("event: "):],
                "data": json.loads(data_line[len("data: "):]),
            })
    return events


# =============================================================================
# Fake upstream
# =============================================================================


class FakeUpstream:
    """Records requests and replays queued httpx responses."""

    def __init__(self) -> None:
        self.received: list[dict[str, Any]] = []
        self._responses: list[Callable[[httpx.Request], httpx.Response]] = []

    def enqueue_json(self, body: dict[str, Any], status_code: int = 200) -> None:
        self._responses.append(lambda request: httpx.Response(status_code, json=body))

    def enqueue_stream(self, chunks: list[Any], *, add_done: bool = True) -> None:
        content = sse_body(chunks, add_done=add_done)
        self._responses.append(
            lambda request: httpx.Response(
                200, content=content, headers={"content-type": "text/event-stream"}
            )
        )

    def enqueue_raw(self, content: bytes, status_code: int = 200, content_type: str = "text/event-stream") -> None:
        self._responses.append(
            lambda request: httpx.Response(status_code, content=content, headers={"content-type": content_type})
        )

    def enqueue_error(self, exc: Exception) -> None:
        def _raise(request: httpx.Request) -> httpx.Response:
            raise exc

        self._responses.append(_raise)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.received.append({
            "url": str(request.url),
            "headers": dict(request.headers),
            "json": json.loads(request.content or b"{}"),
        })
        if not self._responses:
            return httpx.Response(500, json={"error": {"message": "no response queued"}})
        return self._responses.pop(0)(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def gateway_client(fake_upstream: FakeUpstream):
    """Factory for an httpx client talking to a gateway app in-process."""
    from msgbridge.main import create_app

    def _make(config: Optional[dict[str, Any]] = None) -> httpx.AsyncClient:
        app = create_app(config or build_config(), transport=fake_upstream.transport)
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app),
            base_url="http://gateway.test",
        )

    return _make
