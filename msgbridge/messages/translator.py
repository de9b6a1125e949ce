"""Anthropic <-> OpenAI Messages translation.

This module translates between Anthropic Messages API format and OpenAI Chat
Completions API format, enabling the gateway to serve Anthropic-format
requests from OpenAI-compatible backends.

Key mappings:
- Anthropic system (top-level) -> OpenAI system message
- Anthropic content blocks -> OpenAI text / tool_calls / tool messages
- Anthropic tools -> OpenAI function tools
- Anthropic tool_choice -> OpenAI tool_choice
- OpenAI finish_reason -> Anthropic stop_reason

Reference:
- Anthropic Messages API: https://docs.anthropic.com/en/api/messages
- OpenAI Chat Completions: https://platform.openai.com/docs/api-reference/chat
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Mapping, Optional

from ..types import (
    AnthropicContentBlock,
    AnthropicResponse,
    ChatCompletionRequest,
    ChatMessage,
    ChatTool,
    ToolCall,
)

logger = logging.getLogger("msgbridge")


def generate_message_id() -> str:
    return f"msg_{uuid.uuid4().hex}"


def _serialize_tool_input(input_data: Any) -> str:
    """Serialize tool input to a JSON argument string; ``"{}"`` if it can't be."""
    try:
        return json.dumps(input_data, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        logger.debug(f"Failed to serialize tool_use input, sending empty object: {exc}")
        return "{}"


def _serialize_tool_result(content: Any) -> str:
    """Render tool_result content as the text of an OpenAI tool message."""
    if isinstance(content, str):
        return content
    if content is None:
        return ""
    try:
        return json.dumps(content, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        logger.debug(f"Failed to serialize tool_result content, sending empty string: {exc}")
        return ""


def extract_system_text(system: Any) -> Optional[str]:
    """Flatten the Anthropic ``system`` field to a single string.

    A string is used verbatim. A list of blocks contributes each block's
    ``text`` in order, joined by newlines; blocks without text are skipped.
    Returns None when there is no system text.
    """
    if system is None:
        return None

    if isinstance(system, str):
        return system or None

    if isinstance(system, list):
        text_parts: list[str] = []
        for block in system:
            if not isinstance(block, Mapping):
                continue
            text = block.get("text")
            if text is None:
                if block.get("type") not in (None, "text"):
                    logger.warning(f"Non-text block in system parameter: {block.get('type')}")
                continue
            text_parts.append(str(text))
        return "\n".join(text_parts) or None

    return str(system) or None


def _convert_message(message: Mapping[str, Any]) -> list[ChatMessage]:
    """Convert one Anthropic message into zero or more OpenAI messages.

    tool_result blocks become standalone ``tool`` messages in the order they
    appear; text and tool_use blocks are gathered into one trailing message.
    """
    role = message.get("role")
    content = message.get("content")

    if role not in ("user", "assistant"):
        logger.warning(f"Skipping message with unsupported role: {role}")
        return []

    if isinstance(content, str):
        return [{"role": role, "content": content}]

    if not isinstance(content, list):
        logger.debug(f"Skipping {role} message with no usable content")
        return []

    converted: list[ChatMessage] = []
    text_buffer: list[str] = []
    tool_calls: list[ToolCall] = []

    for block in content:
        if not isinstance(block, Mapping):
            continue
        block_type = block.get("type")

        if block_type == "text":
            text = block.get("text")
            if text:
                text_buffer.append(str(text))

        elif block_type == "tool_use":
            tool_calls.append({
                "id": block.get("id") or f"call_{uuid.uuid4().hex[:8]}",
                "type": "function",
                "function": {
                    "name": block.get("name", ""),
                    "arguments": _serialize_tool_input(block.get("input", {})),
                },
            })

        elif block_type == "tool_result":
            converted.append({
                "role": "tool",
                "tool_call_id": block.get("tool_use_id", ""),
                "content": _serialize_tool_result(block.get("content")),
            })

        else:
            logger.debug(f"Dropping unsupported content block during translation: {block_type}")

    text = "".join(text_buffer)
    if not text and not tool_calls:
        return converted

    if role == "user":
        converted.append({"role": "user", "content": text})
    elif tool_calls:
        converted.append({"role": "assistant", "content": text, "tool_calls": tool_calls})
    else:
        converted.append({"role": "assistant", "content": text})

    return converted


def _convert_tool_choice(tool_choice: Any) -> str | dict[str, Any] | None:
    """Convert Anthropic tool_choice to OpenAI format.

    Anthropic: "auto" | "any" | "none" | {"type": "tool", "name": "..."}
    OpenAI: "auto" | "required" | "none" | {"type": "function", "function": {"name": "..."}}
    """
    if tool_choice is None:
        return None

    if isinstance(tool_choice, str):
        choice_type = tool_choice
    elif isinstance(tool_choice, Mapping):
        choice_type = tool_choice.get("type", "")
        if choice_type == "tool":
            return {"type": "function", "function": {"name": tool_choice.get("name", "")}}
    else:
        return None

    if choice_type == "any":
        return "required"
    if choice_type in ("auto", "none"):
        return choice_type
    return None


def _convert_tools(tools: Any) -> list[ChatTool]:
    """Convert Anthropic tools to OpenAI function tools.

    Anthropic: {"name": "...", "description": "...", "input_schema": {...}}
    OpenAI: {"type": "function", "function": {"name": "...", "description": "...", "parameters": {...}}}
    """
    if not isinstance(tools, list):
        return []

    return [
        {
            "type": "function",
            "function": {
                "name": tool.get("name", ""),
                "description": tool.get("description") or "",
                "parameters": tool.get("input_schema") or {},
            },
        }
        for tool in tools
        if isinstance(tool, Mapping)
    ]


def messages_to_chat_completions(payload: Mapping[str, Any]) -> ChatCompletionRequest:
    """Translate an Anthropic Messages request to an OpenAI Chat Completions request.

    Sampling parameters are forwarded only when the caller set them; nothing
    is defaulted. The ``stream`` flag is left to the transport.

    Args:
        payload: Anthropic Messages API request body

    Returns:
        OpenAI Chat Completions API request body
    """
    openai_messages: list[ChatMessage] = []

    system_text = extract_system_text(payload.get("system"))
    if system_text:
        openai_messages.append({"role": "system", "content": system_text})

    for message in payload.get("messages") or []:
        if isinstance(message, Mapping):
            openai_messages.extend(_convert_message(message))

    result: ChatCompletionRequest = {
        "model": payload.get("model", ""),
        "messages": openai_messages,
    }

    for param in ("max_tokens", "temperature", "top_p"):
        if payload.get(param) is not None:
            result[param] = payload[param]  # type: ignore[literal-required]

    stop_sequences = payload.get("stop_sequences")
    if isinstance(stop_sequences, str):
        stop_sequences = [stop_sequences]
    if stop_sequences:
        result["stop"] = list(stop_sequences)

    if "top_k" in payload:
        logger.debug(f"top_k={payload['top_k']} is not supported by OpenAI, ignoring")

    tools = _convert_tools(payload.get("tools"))
    if tools:
        result["tools"] = tools

    tool_choice = _convert_tool_choice(payload.get("tool_choice"))
    if tool_choice is not None:
        result["tool_choice"] = tool_choice

    # Metadata - OpenAI uses user field for tracking
    metadata = payload.get("metadata")
    if isinstance(metadata, Mapping) and metadata.get("user_id"):
        result["user"] = str(metadata["user_id"])

    return result


def convert_stop_reason(finish_reason: Optional[str]) -> str:
    """Convert an OpenAI finish_reason to an Anthropic stop_reason.

    Matching is a case-insensitive substring test, so provider variants such
    as "STOP" or "tool_calls" resolve the same way.
    """
    if not finish_reason:
        return "end_turn"

    reason = str(finish_reason).lower()
    if "stop" in reason:
        return "end_turn"
    if "length" in reason:
        return "max_tokens"
    if "tool" in reason:
        return "tool_use"
    if "content_filter" in reason:
        return "end_turn"
    return "end_turn"


def parse_tool_arguments(arguments: Any) -> dict[str, Any]:
    """Parse a tool-call argument string into an input object.

    Malformed or non-object JSON degrades to an empty object.
    """
    if isinstance(arguments, Mapping):
        return dict(arguments)
    if not isinstance(arguments, str) or not arguments.strip():
        return {}
    try:
        parsed = json.loads(arguments)
    except json.JSONDecodeError:
        logger.debug(f"Malformed tool arguments, using empty input: {arguments[:100]}")
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _message_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            str(part.get("text", ""))
            for part in content
            if isinstance(part, Mapping) and part.get("type") == "text"
        )
    return ""


def chat_completion_to_messages(
    payload: Mapping[str, Any],
    requested_model: Optional[str] = None,
) -> Optional[AnthropicResponse]:
    """Translate an OpenAI Chat Completions response to an Anthropic message.

    Args:
        payload: OpenAI Chat Completions API response body
        requested_model: The model the caller asked for; echoed back as ``model``

    Returns:
        Anthropic Messages API response body, or None when the upstream
        returned no choices.
    """
    choices = payload.get("choices") or []
    if not choices:
        return None

    choice = choices[0] or {}
    message = choice.get("message") or {}

    content_blocks: list[AnthropicContentBlock] = []

    text = _message_text(message.get("content"))
    if text:
        content_blocks.append({"type": "text", "text": text})

    for call in message.get("tool_calls") or []:
        function = call.get("function") or {}
        content_blocks.append({
            "type": "tool_use",
            "id": call.get("id") or f"toolu_{uuid.uuid4().hex[:12]}",
            "name": function.get("name", ""),
            "input": parse_tool_arguments(function.get("arguments")),
        })

    response: AnthropicResponse = {
        "id": payload.get("id") or generate_message_id(),
        "type": "message",
        "role": "assistant",
        "content": content_blocks,
        "model": requested_model if requested_model is not None else payload.get("model", ""),
        "stop_reason": convert_stop_reason(choice.get("finish_reason")),
        "stop_sequence": None,
    }

    usage = payload.get("usage")
    if isinstance(usage, Mapping):
        response["usage"] = {
            "input_tokens": usage.get("prompt_tokens") or 0,
            "output_tokens": usage.get("completion_tokens") or 0,
        }

    return response
