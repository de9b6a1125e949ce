"""Wire types for both sides of the gateway.

Types are separated into:
- Anthropic types: the inbound Messages API request/response shape
- OpenAI-compatible types: the outbound Chat Completions shape
"""

from typing import Any
from typing_extensions import TypedDict


# =============================================================================
# Anthropic Types (inbound)
# =============================================================================


class AnthropicContentBlock(TypedDict, total=False):
    """A content block in an Anthropic message.

    Attributes:
        type: Type of content block:
            - "text": Plain text content
            - "tool_use": Request to use a tool
            - "tool_result": Result from a tool
        text: Text content (for "text" blocks).
        id: Block identifier (for "tool_use" blocks).
        name: Tool name (for "tool_use" blocks).
        input: Tool input/arguments (for "tool_use" blocks).
        tool_use_id: ID of the tool_use this result answers.
        content: Result content (for "tool_result" blocks). Usually a string,
            but may be any JSON value.
    """
    type: str
    text: str
    id: str
    name: str
    input: Any
    tool_use_id: str
    content: Any


class AnthropicMessage(TypedDict, total=False):
    """A message in an Anthropic request.

    Attributes:
        role: "user" or "assistant".
        content: Plain text or an ordered list of content blocks.
    """
    role: str
    content: str | list[AnthropicContentBlock]


class AnthropicTool(TypedDict, total=False):
    """A tool definition with a JSON-schema input."""
    name: str
    description: str
    input_schema: dict[str, Any]


class AnthropicRequest(TypedDict, total=False):
    """An Anthropic Messages API request body.

    Attributes:
        model: Requested model identifier.
        messages: Conversation turns in order.
        system: System prompt as a string or a list of text blocks.
        max_tokens: Maximum number of output tokens.
        temperature: Sampling temperature.
        top_p: Nucleus sampling parameter.
        stop_sequences: Custom stop sequences.
        tools: Tool definitions available to the model.
        tool_choice: How the model should pick tools.
        metadata: Request metadata (``user_id`` is forwarded).
        stream: Whether the caller wants a streamed response.
    """
    model: str
    messages: list[AnthropicMessage]
    system: str | list[AnthropicContentBlock]
    max_tokens: int
    temperature: float
    top_p: float
    stop_sequences: list[str]
    tools: list[AnthropicTool]
    tool_choice: str | dict[str, Any]
    metadata: dict[str, Any]
    stream: bool


class AnthropicUsage(TypedDict, total=False):
    """Token usage information in Anthropic shape."""
    input_tokens: int
    output_tokens: int


class AnthropicResponse(TypedDict, total=False):
    """A complete Anthropic message response.

    Attributes:
        id: Unique message identifier.
        type: Always "message".
        role: Always "assistant".
        content: Text and tool_use blocks.
        model: The model the caller asked for.
        stop_reason: "end_turn", "max_tokens" or "tool_use".
        stop_sequence: Always None; the upstream does not report it.
        usage: Token usage, omitted when the upstream did not report it.
    """
    id: str
    type: str
    role: str
    content: list[AnthropicContentBlock]
    model: str
    stop_reason: str
    stop_sequence: str | None
    usage: AnthropicUsage


# =============================================================================
# OpenAI-Compatible Types (outbound)
# =============================================================================


class FunctionCall(TypedDict, total=False):
    """A function call within a tool call.

    Attributes:
        name: Name of the function. Can be None for streamed follow-up
            chunks where the name was already stated.
        arguments: JSON string with the arguments. Streamed in fragments.
    """
    name: str | None
    arguments: str | None


class ToolCall(TypedDict, total=False):
    """A tool call descriptor.

    Attributes:
        id: Unique identifier, matched by later tool results.
        type: Typically "function".
        function: The function to call with its arguments.
        index: Position in the tool_calls array (streaming only).
    """
    id: str
    type: str
    function: FunctionCall
    index: int


class ChatMessage(TypedDict, total=False):
    """A message in a chat conversation.

    Attributes:
        role: "system", "user", "assistant" or "tool".
        content: Text content; None when only tool_calls is present.
        tool_calls: Tool calls requested by the assistant.
        tool_call_id: ID of the call a tool message answers.
    """
    role: str
    content: str | None
    tool_calls: list[ToolCall]
    tool_call_id: str


class FunctionDefinition(TypedDict, total=False):
    name: str
    description: str
    parameters: dict[str, Any]


class ChatTool(TypedDict):
    type: str
    function: FunctionDefinition


class ChatCompletionRequest(TypedDict, total=False):
    """An outbound Chat Completions request body."""
    model: str
    messages: list[ChatMessage]
    max_tokens: int
    temperature: float
    top_p: float
    stop: list[str]
    tools: list[ChatTool]
    tool_choice: str | dict[str, Any]
    user: str
    stream: bool


class Delta(TypedDict, total=False):
    """A streamed delta of a choice.

    Attributes:
        role: Role indicator, typically only on the first chunk.
        content: Incremental text content.
        tool_calls: Tool call fragments keyed by ``index``.
    """
    role: str | None
    content: str | None
    tool_calls: list[ToolCall] | None


class Choice(TypedDict, total=False):
    """A choice in a chat completion response.

    Attributes:
        index: Zero-based index of this choice.
        delta: The incremental content for streaming responses.
        message: The complete message for non-streaming responses.
        finish_reason: Why the model stopped generating:
            - "stop": Natural stopping point
            - "length": Hit max tokens limit
            - "tool_calls": Model requested tool calls
            - "content_filter": Content was filtered
    """
    index: int
    delta: Delta | None
    message: ChatMessage | None
    finish_reason: str | None


class Usage(TypedDict, total=False):
    """Token usage information from a completion response."""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class ChatCompletionChunk(TypedDict, total=False):
    """A streamed chunk of a chat completion response."""
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]
    usage: Usage | None


class ChatCompletionResponse(TypedDict, total=False):
    """A complete (non-streaming) chat completion response."""
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]
    usage: Usage | None
