"""Anthropic Messages streaming events.

The stream vocabulary is a closed set: one ``TypedDict`` variant per event
``type``, each with a ``Literal`` discriminator. Instances are plain dicts, so
they serialize to the Anthropic wire shape with ``json.dumps`` unchanged.

    event: message_start
    data: {"type":"message_start","message":{...}}

    event: content_block_start
    data: {"type":"content_block_start","index":0,"content_block":{"type":"text","text":""}}

    event: content_block_delta
    data: {"type":"content_block_delta","index":0,"delta":{"type":"text_delta","text":"Hello"}}

    event: content_block_stop
    data: {"type":"content_block_stop","index":0}

    event: message_delta
    data: {"type":"message_delta","delta":{"stop_reason":"end_turn","stop_sequence":null},"usage":{"output_tokens":0}}

    event: message_stop
    data: {"type":"message_stop"}
"""

from typing import Any, Literal, Optional, Union
from typing_extensions import TypedDict


class StartMessage(TypedDict):
    """The skeleton message carried by ``message_start``."""

    id: str
    type: Literal["message"]
    role: Literal["assistant"]
    content: list[Any]
    model: str
    stop_reason: None
    stop_sequence: None
    usage: dict[str, int]


class TextBlockStart(TypedDict):
    type: Literal["text"]
    text: str


class ToolUseBlockStart(TypedDict):
    type: Literal["tool_use"]
    id: str
    name: str
    input: dict[str, Any]


class TextDelta(TypedDict):
    type: Literal["text_delta"]
    text: str


class InputJsonDelta(TypedDict):
    type: Literal["input_json_delta"]
    partial_json: str


class StopDelta(TypedDict):
    stop_reason: str
    stop_sequence: Optional[str]


class MessageStartEvent(TypedDict):
    type: Literal["message_start"]
    message: StartMessage


class ContentBlockStartEvent(TypedDict):
    type: Literal["content_block_start"]
    index: int
    content_block: Union[TextBlockStart, ToolUseBlockStart]


class ContentBlockDeltaEvent(TypedDict):
    type: Literal["content_block_delta"]
    index: int
    delta: Union[TextDelta, InputJsonDelta]


class ContentBlockStopEvent(TypedDict):
    type: Literal["content_block_stop"]
    index: int


class MessageDeltaEvent(TypedDict):
    type: Literal["message_delta"]
    delta: StopDelta
    usage: dict[str, int]


class MessageStopEvent(TypedDict):
    type: Literal["message_stop"]


MessagesStreamEvent = Union[
    MessageStartEvent,
    ContentBlockStartEvent,
    ContentBlockDeltaEvent,
    ContentBlockStopEvent,
    MessageDeltaEvent,
    MessageStopEvent,
]

STREAM_EVENT_TYPES = (
    "message_start",
    "content_block_start",
    "content_block_delta",
    "content_block_stop",
    "message_delta",
    "message_stop",
)


def message_start(message_id: str, model: str) -> MessageStartEvent:
    return {
        "type": "message_start",
        "message": {
            "id": message_id,
            "type": "message",
            "role": "assistant",
            "content": [],
            "model": model,
            "stop_reason": None,
            "stop_sequence": None,
            "usage": {"input_tokens": 0, "output_tokens": 0},
        },
    }


def text_block_start(index: int) -> ContentBlockStartEvent:
    return {
        "type": "content_block_start",
        "index": index,
        "content_block": {"type": "text", "text": ""},
    }


def tool_use_block_start(index: int, tool_id: str, name: str) -> ContentBlockStartEvent:
    return {
        "type": "content_block_start",
        "index": index,
        "content_block": {"type": "tool_use", "id": tool_id, "name": name, "input": {}},
    }


def text_delta(index: int, text: str) -> ContentBlockDeltaEvent:
    return {
        "type": "content_block_delta",
        "index": index,
        "delta": {"type": "text_delta", "text": text},
    }


def input_json_delta(index: int, partial_json: str) -> ContentBlockDeltaEvent:
    return {
        "type": "content_block_delta",
        "index": index,
        "delta": {"type": "input_json_delta", "partial_json": partial_json},
    }


def content_block_stop(index: int) -> ContentBlockStopEvent:
    return {"type": "content_block_stop", "index": index}


def message_delta(stop_reason: str, output_tokens: int = 0) -> MessageDeltaEvent:
    # Upstream chunks do not carry usage we can trust here; output_tokens stays 0.
    return {
        "type": "message_delta",
        "delta": {"stop_reason": stop_reason, "stop_sequence": None},
        "usage": {"output_tokens": output_tokens},
    }


def message_stop() -> MessageStopEvent:
    return {"type": "message_stop"}
