"""SSE (Server-Sent Events) framing, decoding and error detection."""

import codecs
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

logger = logging.getLogger("msgbridge")

DONE_SENTINEL = "[DONE]"


def encode_sse_event(event: Mapping[str, Any]) -> str:
    """Frame one event as ``event: <type>\\ndata: <json>\\n\\n``.

    A serialization failure is logged and yields an empty string; callers drop
    empty frames and keep streaming.
    """
    try:
        data = json.dumps(event, ensure_ascii=False)
        return f"event: {event['type']}\ndata: {data}\n\n"
    except (TypeError, ValueError, KeyError) as exc:
        logger.warning("Failed to serialize SSE event: %s", exc)
        return ""


@dataclass
class SSEEvent:
    data: Optional[str]
    other_lines: list[str] = field(default_factory=list)


class SSEDecoder:
    """Incremental decoder that reassembles SSE events split across chunks."""

    def __init__(self) -> None:
        self._buffer = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, chunk: bytes) -> list[SSEEvent]:
        if not chunk:
            return []
        text = self._decoder.decode(chunk)
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        self._buffer += text
        events: list[SSEEvent] = []

        while True:
            sep_index = self._buffer.find("\n\n")
            if sep_index == -1:
                break
            raw_event = self._buffer[:sep_index]
            self._buffer = self._buffer[sep_index + 2:]
            if not raw_event.strip():
                continue
            events.append(self._parse_event(raw_event))

        return events

    def flush(self) -> list[SSEEvent]:
        """Return a trailing event that was not terminated by a blank line."""
        leftover = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        if not leftover.strip():
            return []
        return [self._parse_event(leftover.rstrip("\n"))]

    @staticmethod
    def _parse_event(raw: str) -> SSEEvent:
        data_lines: list[str] = []
        other_lines: list[str] = []
        for line in raw.split("\n"):
            if line.startswith("data:"):
                data_lines.append(line[5:].removeprefix(" "))
            else:
                other_lines.append(line)
        data = "\n".join(data_lines) if data_lines else None
        return SSEEvent(data=data, other_lines=other_lines)


def detect_sse_error_payload(parsed: Any) -> Optional[str]:
    """Return an error message if a decoded SSE payload is an error event.

    Detects patterns like:
    - MiniMax: {"type":"error","error":{...}}
    - Generic: {"error":{...}}
    """
    if not isinstance(parsed, dict):
        return None

    if parsed.get("type") == "error":
        error_obj = parsed.get("error") or {}
        if isinstance(error_obj, dict):
            error_msg = error_obj.get("message") or (str(error_obj) if error_obj else "unknown error")
            http_code = error_obj.get("http_code", "unknown")
        else:
            error_msg, http_code = str(error_obj), "unknown"
        return f"SSE stream error: {error_msg} (http_code={http_code})"

    error_obj = parsed.get("error")
    if isinstance(error_obj, dict):
        error_msg = error_obj.get("message") or str(error_obj)
        error_type = error_obj.get("type", "unknown")
        return f"SSE stream error: {error_msg} (type={error_type})"

    return None
