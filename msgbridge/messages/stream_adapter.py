"""Stream adapter for converting OpenAI Chat Completions chunks to Anthropic Messages SSE.

OpenAI Chat Completion chunks (already decoded from SSE by the transport):
    {"choices":[{"delta":{"role":"assistant"},"index":0}]}
    {"choices":[{"delta":{"content":"Hello"},"index":0}]}
    {"choices":[{"delta":{"tool_calls":[...]},"index":0}]}
    {"choices":[{"delta":{},"finish_reason":"stop","index":0}]}

Anthropic Messages events:
    message_start
    content_block_start / content_block_delta / content_block_stop (repeated)
    message_delta
    message_stop

The adapter owns all per-stream state and is driven by exactly one task, one
chunk at a time, so it needs no locking. It must not be reused across
requests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Mapping, Optional

from ..core.sse import encode_sse_event
from ..types import events
from ..types.events import MessagesStreamEvent
from .translator import generate_message_id

logger = logging.getLogger("msgbridge")


@dataclass(frozen=True)
class ToolCallInfo:
    """A tool call reassembled from a stream, handed to metrics after close."""

    id: str
    name: str
    arguments: str


@dataclass
class _ToolCallAccumulator:
    index: int
    id: str
    name: str
    block_index: int
    block_open: bool = True
    argument_fragments: list[str] = field(default_factory=list)

    def finalize(self) -> ToolCallInfo:
        return ToolCallInfo(self.id, self.name, "".join(self.argument_fragments))


class ChatToMessagesStreamAdapter:
    """Converts an OpenAI chat completion chunk stream to Anthropic Messages events.

    States: not started -> open (first chunk, ``message_start``) -> closed
    (``finish()``, ``message_delta`` + ``message_stop``).

    Invariants:
    - ``message_start`` is emitted exactly once, before any other event
    - at most one content block (text or tool_use) is open at a time
    - block indices come from a counter starting at 0 and are never reused
    - the stream ends with one ``message_delta`` followed by one ``message_stop``
    """

    def __init__(
        self,
        model: Optional[str],
        message_id: Optional[str] = None,
        on_complete: Optional[Callable[[list[ToolCallInfo]], None]] = None,
    ):
        """Initialize the stream adapter.

        Args:
            model: Model name the caller requested; "unknown" when missing
            message_id: The message ID to use; generated when omitted
            on_complete: Receives the finalized tool calls once, after a
                normal close. Not called when the stream fails.
        """
        self.message_id = message_id or generate_message_id()
        self.model = model or "unknown"
        self._on_complete = on_complete

        self.message_started = False
        self.closed = False

        self._next_block_index = 0
        self._open_block_index: Optional[int] = None
        self._text_open = False

        self._current_tool: Optional[_ToolCallAccumulator] = None
        self._completed_tool_calls: list[ToolCallInfo] = []

    @property
    def tool_calls(self) -> list[ToolCallInfo]:
        """Tool calls finalized so far, in the order they were closed."""
        return list(self._completed_tool_calls)

    def consume_chunk(self, chunk: Mapping[str, Any]) -> list[MessagesStreamEvent]:
        """Process one upstream chunk and return the events it produces."""
        if self.closed:
            raise RuntimeError("stream adapter is already closed")

        emitted: list[MessagesStreamEvent] = []

        if not self.message_started:
            self.message_started = True
            emitted.append(events.message_start(self.message_id, self.model))

        choices = chunk.get("choices") or []
        if not choices or not isinstance(choices[0], Mapping):
            return emitted

        choice = choices[0]
        delta = choice.get("delta") or {}

        content = delta.get("content")
        if isinstance(content, str) and content:
            emitted.extend(self._handle_text(content))

        for fragment in delta.get("tool_calls") or []:
            if isinstance(fragment, Mapping):
                emitted.extend(self._handle_tool_call_fragment(fragment))

        if choice.get("finish_reason") and self._current_tool is not None:
            emitted.extend(self._finalize_current_tool())

        return emitted

    def finish(self) -> list[MessagesStreamEvent]:
        """Close the stream once the upstream is exhausted."""
        if self.closed:
            raise RuntimeError("stream adapter is already closed")

        emitted: list[MessagesStreamEvent] = []
        if not self.message_started:
            self.message_started = True
            emitted.append(events.message_start(self.message_id, self.model))

        if self._text_open:
            emitted.extend(self._close_text_block())
        if self._current_tool is not None:
            emitted.extend(self._finalize_current_tool())

        emitted.append(events.message_delta("end_turn"))
        emitted.append(events.message_stop())
        self.closed = True
        return emitted

    async def adapt_stream(
        self,
        chunk_stream: AsyncIterator[Mapping[str, Any]],
    ) -> AsyncIterator[bytes]:
        """Transform upstream chunks into encoded Anthropic Messages SSE frames.

        An upstream failure propagates to the caller as-is; no closing events
        are synthesized for a stream that did not finish.

        Args:
            chunk_stream: Parsed OpenAI chat completion chunks

        Yields:
            Anthropic Messages API SSE frames as bytes
        """
        async for chunk in chunk_stream:
            for event in self.consume_chunk(chunk):
                frame = encode_sse_event(event)
                if frame:
                    yield frame.encode("utf-8")

        for event in self.finish():
            frame = encode_sse_event(event)
            if frame:
                yield frame.encode("utf-8")

        if self._on_complete is not None:
            self._on_complete(self.tool_calls)

    def _allocate_block_index(self) -> int:
        index = self._next_block_index
        self._next_block_index += 1
        self._open_block_index = index
        return index

    def _handle_text(self, content: str) -> list[MessagesStreamEvent]:
        emitted: list[MessagesStreamEvent] = []
        if not self._text_open:
            # Text ends the tool_use block but not the call; later fragments still count.
            if self._current_tool is not None and self._current_tool.block_open:
                emitted.extend(self._close_tool_block())
            emitted.append(events.text_block_start(self._allocate_block_index()))
            self._text_open = True
        emitted.append(events.text_delta(self._open_block_index, content))
        return emitted

    def _handle_tool_call_fragment(self, fragment: Mapping[str, Any]) -> list[MessagesStreamEvent]:
        emitted: list[MessagesStreamEvent] = []
        index = fragment.get("index", 0)
        tool_id = fragment.get("id")
        function = fragment.get("function") or {}
        name = function.get("name")
        arguments = function.get("arguments")

        tracked_index = self._current_tool.index if self._current_tool is not None else None
        if tool_id and index != tracked_index:
            if self._text_open:
                emitted.extend(self._close_text_block())
            if self._current_tool is not None:
                emitted.extend(self._finalize_current_tool())

            block_index = self._allocate_block_index()
            self._current_tool = _ToolCallAccumulator(
                index=index,
                id=str(tool_id),
                name=name or "",
                block_index=block_index,
            )
            emitted.append(
                events.tool_use_block_start(block_index, self._current_tool.id, self._current_tool.name)
            )
        elif name and self._current_tool is not None and not self._current_tool.name:
            self._current_tool.name = name

        if arguments:
            if self._current_tool is None:
                logger.debug(f"Dropping tool arguments for untracked call index {index}")
                return emitted
            self._current_tool.argument_fragments.append(arguments)
            if self._current_tool.block_open:
                emitted.append(events.input_json_delta(self._current_tool.block_index, arguments))
            else:
                logger.debug(f"Buffering arguments for call index {index} after its block closed")

        return emitted

    def _close_text_block(self) -> list[MessagesStreamEvent]:
        index = self._open_block_index
        self._text_open = False
        self._open_block_index = None
        return [events.content_block_stop(index)]

    def _close_tool_block(self) -> list[MessagesStreamEvent]:
        tool = self._current_tool
        tool.block_open = False
        self._open_block_index = None
        return [events.content_block_stop(tool.block_index)]

    def _finalize_current_tool(self) -> list[MessagesStreamEvent]:
        emitted = self._close_tool_block() if self._current_tool.block_open else []
        self._completed_tool_calls.append(self._current_tool.finalize())
        self._current_tool = None
        return emitted


async def adapt_chat_stream_to_messages(
    model: Optional[str],
    chunk_stream: AsyncIterator[Mapping[str, Any]],
    message_id: Optional[str] = None,
) -> AsyncIterator[bytes]:
    """Convenience function to adapt an OpenAI chunk stream to Anthropic Messages SSE.

    Args:
        model: Model name
        chunk_stream: Parsed OpenAI chat completion chunks
        message_id: Message ID for the response

    Yields:
        Anthropic Messages API SSE frames
    """
    adapter = ChatToMessagesStreamAdapter(model, message_id)
    async for frame in adapter.adapt_stream(chunk_stream):
        yield frame
