"""In-memory usage counters fed by the messages endpoint.

The translator only supplies data; this module keeps the running totals that
``/api/usage`` reports. Counters are shared by every request, so they are
guarded by a lock.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Iterable, Mapping

from .messages import ToolCallInfo


class RequestTracker:
    """Track a single request lifecycle for in-memory counters."""

    def __init__(self, counters: "UsageCounters") -> None:
        self._counters = counters
        self._finished = False

    def finish(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._counters.finish_request()


@dataclass
class UsageCounters:
    """Thread-safe counters for requests, tool calls and tokens."""

    _lock: Lock = field(default_factory=Lock, repr=False)
    _started_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    _received: int = 0
    _served: int = 0
    _ongoing: int = 0
    _input_tokens: int = 0
    _output_tokens: int = 0
    _requests_by_model: Counter = field(default_factory=Counter)
    _tool_calls_by_name: Counter = field(default_factory=Counter)

    def start_request(self) -> RequestTracker:
        with self._lock:
            self._received += 1
            self._ongoing += 1
        return RequestTracker(self)

    def finish_request(self) -> None:
        with self._lock:
            self._served += 1
            if self._ongoing > 0:
                self._ongoing -= 1
            else:
                self._ongoing = 0

    def record_request(self, payload: Mapping[str, Any]) -> None:
        """Record request metadata (model only; contents are never kept)."""
        model = payload.get("model") or "unknown"
        with self._lock:
            self._requests_by_model[str(model)] += 1

    def record_response(self, response: Mapping[str, Any]) -> None:
        """Record tool calls and token usage from a translated response."""
        names = [
            str(block.get("name", ""))
            for block in response.get("content") or []
            if block.get("type") == "tool_use"
        ]
        usage = response.get("usage") or {}
        with self._lock:
            self._tool_calls_by_name.update(names)
            self._input_tokens += int(usage.get("input_tokens") or 0)
            self._output_tokens += int(usage.get("output_tokens") or 0)

    def record_stream_tool_calls(self, tool_calls: Iterable[ToolCallInfo]) -> None:
        """Record the tool calls of one fully closed stream."""
        names = [call.name for call in tool_calls]
        if not names:
            return
        with self._lock:
            self._tool_calls_by_name.update(names)

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "started_at": self._started_at,
                "received": self._received,
                "served": self._served,
                "ongoing": self._ongoing,
                "input_tokens": self._input_tokens,
                "output_tokens": self._output_tokens,
                "requests_by_model": dict(self._requests_by_model),
                "tool_calls_by_name": dict(self._tool_calls_by_name),
            }


USAGE_COUNTERS = UsageCounters()


def build_usage_snapshot(counters: UsageCounters | None = None) -> dict[str, Any]:
    """Build the usage payload with realtime counters."""
    counters = counters or USAGE_COUNTERS
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "realtime": counters.snapshot(),
    }
