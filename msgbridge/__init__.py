"""msgbridge - Anthropic Messages API gateway for OpenAI-compatible backends

Accepts Anthropic Messages requests, forwards them to a Chat Completions
upstream and translates the answer back, including streamed responses.

This module provides:
- messages_to_chat_completions / chat_completion_to_messages: request and
  response translation
- ChatToMessagesStreamAdapter: streaming reassembly into Anthropic SSE events
- create_app: the FastAPI gateway

Example:
    >>> from msgbridge import create_app
    >>> import uvicorn
    >>> uvicorn.run(create_app(), host="127.0.0.1", port=8000)
"""

from .config_loader import load_config
from .logging import logger, setup_logging
from .main import create_app, run
from .messages import (
    ChatToMessagesStreamAdapter,
    ToolCallInfo,
    chat_completion_to_messages,
    messages_to_chat_completions,
)

__all__ = [
    "ChatToMessagesStreamAdapter",
    "ToolCallInfo",
    "chat_completion_to_messages",
    "create_app",
    "load_config",
    "logger",
    "messages_to_chat_completions",
    "run",
    "setup_logging",
]
