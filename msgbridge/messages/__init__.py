"""Anthropic Messages API translation.

Provides translation between Anthropic Messages API format and OpenAI Chat
Completions API format, enabling the gateway to route Anthropic-format
requests to OpenAI-compatible backends.
"""

from .translator import (
    chat_completion_to_messages,
    convert_stop_reason,
    extract_system_text,
    messages_to_chat_completions,
)
from .stream_adapter import (
    ChatToMessagesStreamAdapter,
    ToolCallInfo,
    adapt_chat_stream_to_messages,
)

__all__ = [
    "messages_to_chat_completions",
    "chat_completion_to_messages",
    "convert_stop_reason",
    "extract_system_text",
    "ChatToMessagesStreamAdapter",
    "ToolCallInfo",
    "adapt_chat_stream_to_messages",
]
