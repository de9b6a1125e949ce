"""Type definitions for the gateway."""

from .chat import (
    AnthropicContentBlock,
    AnthropicMessage,
    AnthropicRequest,
    AnthropicResponse,
    AnthropicTool,
    AnthropicUsage,
    ChatCompletionChunk,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    ChatTool,
    Choice,
    Delta,
    FunctionCall,
    ToolCall,
    Usage,
)
from .events import (
    STREAM_EVENT_TYPES,
    ContentBlockDeltaEvent,
    ContentBlockStartEvent,
    ContentBlockStopEvent,
    MessageDeltaEvent,
    MessageStartEvent,
    MessageStopEvent,
    MessagesStreamEvent,
)

__all__ = [
    "AnthropicContentBlock",
    "AnthropicMessage",
    "AnthropicRequest",
    "AnthropicResponse",
    "AnthropicTool",
    "AnthropicUsage",
    "ChatCompletionChunk",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatMessage",
    "ChatTool",
    "Choice",
    "ContentBlockDeltaEvent",
    "ContentBlockStartEvent",
    "ContentBlockStopEvent",
    "Delta",
    "FunctionCall",
    "MessageDeltaEvent",
    "MessageStartEvent",
    "MessageStopEvent",
    "MessagesStreamEvent",
    "STREAM_EVENT_TYPES",
    "ToolCall",
    "Usage",
]
