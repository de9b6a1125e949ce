"""Tests for in-memory usage counters."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from msgbridge.messages import ToolCallInfo
from msgbridge.usage_metrics import UsageCounters, build_usage_snapshot


class TestUsageCounters:
    def test_request_lifecycle(self):
        """Test received, ongoing and served move with the tracker."""
        counters = UsageCounters()

        tracker = counters.start_request()
        assert counters.snapshot()["ongoing"] == 1

        tracker.finish()
        tracker.finish()
        snapshot = counters.snapshot()

        assert snapshot["received"] == 1
        assert snapshot["served"] == 1
        assert snapshot["ongoing"] == 0

    def test_record_request_counts_models(self):
        """Test requests are tallied by model without storing contents."""
        counters = UsageCounters()

        counters.record_request({"model": "claude-3", "messages": [{"role": "user", "content": "secret"}]})
        counters.record_request({"model": "claude-3"})
        counters.record_request({})

        snapshot = counters.snapshot()
        assert snapshot["requests_by_model"] == {"claude-3": 2, "unknown": 1}
        assert "secret" not in str(snapshot)

    def test_record_response(self):
        """Test tool calls and token usage are taken from a translated response."""
        counters = UsageCounters()

        counters.record_response({
            "content": [
                {"type": "text", "text": "hi"},
                {"type": "tool_use", "id": "t1", "name": "search", "input": {}},
            ],
            "usage": {"input_tokens": 12, "output_tokens": 3},
        })

        snapshot = counters.snapshot()
        assert snapshot["tool_calls_by_name"] == {"search": 1}
        assert snapshot["input_tokens"] == 12
        assert snapshot["output_tokens"] == 3

    def test_record_stream_tool_calls(self):
        """Test streamed tool calls are tallied by name."""
        counters = UsageCounters()

        counters.record_stream_tool_calls([ToolCallInfo("a", "search", "{}"), ToolCallInfo("b", "search", "{}")])
        counters.record_stream_tool_calls([])

        assert counters.snapshot()["tool_calls_by_name"] == {"search": 2}

    def test_build_usage_snapshot(self):
        """Test the usage payload wraps the realtime counters."""
        counters = UsageCounters()
        counters.start_request()

        payload = build_usage_snapshot(counters)

        assert set(payload) == {"generated_at", "realtime"}
        assert payload["realtime"]["received"] == 1
