"""Anthropic-compatible Messages API endpoint."""

import json
import logging
import time
import uuid
from typing import Any, AsyncIterator, Mapping

from fastapi import Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.requests import ClientDisconnect

from ...core import (
    InvalidRequestError,
    UpstreamError,
    UpstreamHTTPError,
    UpstreamStreamError,
    extract_caller_api_key,
)
from ...core.registry import get_upstream
from ...logging import log_error_event
from ...messages import (
    ChatToMessagesStreamAdapter,
    chat_completion_to_messages,
    messages_to_chat_completions,
)
from ...usage_metrics import USAGE_COUNTERS

logger = logging.getLogger("msgbridge")


def _anthropic_error_response(
    message: str,
    *,
    error_type: str = "invalid_request_error",
    status_code: int = 400,
) -> JSONResponse:
    payload = {"type": "error", "error": {"type": error_type, "message": message}}
    return JSONResponse(payload, status_code=status_code)


def _upstream_error_message(exc: UpstreamHTTPError) -> str:
    """Prefer the upstream's own error message when its body carries one."""
    try:
        body = json.loads(exc.body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError):
        return exc.message
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return exc.message


def _parse_payload(body: bytes) -> Mapping[str, Any]:
    """Decode the request body and check the fields translation relies on."""
    try:
        payload = json.loads(body or b"{}")
    except ValueError as exc:
        raise InvalidRequestError("Invalid JSON payload", code="invalid_json") from exc

    if not isinstance(payload, Mapping):
        raise InvalidRequestError("Request body must be a JSON object")

    model_name = payload.get("model")
    if not isinstance(model_name, str) or not model_name.strip():
        raise InvalidRequestError("You must provide a model parameter", param="model")

    if not isinstance(payload.get("messages"), list):
        raise InvalidRequestError("messages: field required and must be a list", param="messages")

    return payload


async def messages_endpoint(request: Request) -> Response:
    """POST /v1/messages - Anthropic Messages API compatible endpoint."""
    # Generate request ID for log correlation
    req_id = uuid.uuid4().hex[:8]
    start_time = time.perf_counter()
    client_host = request.client.host if request.client else "unknown"

    logger.info(f"[{req_id}] Messages API request from {client_host}")

    tracker = USAGE_COUNTERS.start_request()

    try:
        body = await request.body()
    except ClientDisconnect:
        logger.warning(f"[{req_id}] ClientDisconnect while reading body")
        tracker.finish()
        return Response(status_code=499)  # Client Closed Request

    try:
        payload = _parse_payload(body)
    except InvalidRequestError as exc:
        logger.warning(f"[{req_id}] Rejected request: {exc.message}")
        tracker.finish()
        return _anthropic_error_response(exc.message)

    model_name = payload["model"]

    upstream = get_upstream()
    api_key = extract_caller_api_key(request.headers)
    is_stream = bool(payload.get("stream"))

    USAGE_COUNTERS.record_request(payload)

    openai_payload = messages_to_chat_completions(payload)
    openai_payload["model"] = upstream.backend.resolve_model(model_name)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            f"[{req_id}] Translated to OpenAI format: model={openai_payload.get('model')}, "
            f"messages_count={len(openai_payload.get('messages', []))}, stream={is_stream}"
        )

    if is_stream:
        return await _stream_messages(req_id, start_time, model_name, openai_payload, api_key, tracker)

    try:
        completion = await upstream.create_chat_completion(openai_payload, api_key=api_key)
    except UpstreamHTTPError as exc:
        logger.error(f"[{req_id}] Upstream returned status {exc.status_code}")
        log_error_event(model_name, "upstream_http_error", exc.message, request_id=req_id, http_status=exc.status_code)
        tracker.finish()
        return _anthropic_error_response(
            _upstream_error_message(exc),
            error_type="api_error",
            status_code=exc.status_code,
        )
    except UpstreamError as exc:
        elapsed = time.perf_counter() - start_time
        logger.error(f"[{req_id}] Upstream error after {elapsed:.3f}s: {exc}")
        log_error_event(model_name, "upstream_error", exc.message, request_id=req_id)
        tracker.finish()
        return _anthropic_error_response(str(exc), error_type="api_error", status_code=502)

    anthropic_response = chat_completion_to_messages(completion, model_name)
    if anthropic_response is None:
        logger.error(f"[{req_id}] Upstream response carried no choices")
        log_error_event(model_name, "empty_choices", "upstream response carried no choices", request_id=req_id)
        tracker.finish()
        return _anthropic_error_response(
            "Upstream returned no choices",
            error_type="api_error",
            status_code=502,
        )

    USAGE_COUNTERS.record_response(anthropic_response)

    elapsed = time.perf_counter() - start_time
    logger.info(
        f"[{req_id}] Completed non-streaming response for {model_name}, "
        f"stop_reason={anthropic_response['stop_reason']}, took {elapsed:.3f}s"
    )
    tracker.finish()
    return JSONResponse(anthropic_response)


async def _stream_messages(
    req_id: str,
    start_time: float,
    model_name: str,
    openai_payload: Mapping[str, Any],
    api_key: str,
    tracker: Any,
) -> Response:
    upstream = get_upstream()
    try:
        stream = await upstream.open_chat_stream(openai_payload, api_key=api_key)
    except UpstreamHTTPError as exc:
        logger.error(f"[{req_id}] Upstream stream returned status {exc.status_code}")
        log_error_event(model_name, "upstream_http_error", exc.message, request_id=req_id, http_status=exc.status_code)
        tracker.finish()
        return _anthropic_error_response(
            _upstream_error_message(exc),
            error_type="api_error",
            status_code=exc.status_code,
        )
    except UpstreamError as exc:
        logger.error(f"[{req_id}] Failed to open upstream stream: {exc}")
        log_error_event(model_name, "upstream_error", exc.message, request_id=req_id)
        tracker.finish()
        return _anthropic_error_response(str(exc), error_type="api_error", status_code=502)

    adapter = ChatToMessagesStreamAdapter(
        model_name,
        on_complete=USAGE_COUNTERS.record_stream_tool_calls,
    )
    elapsed = time.perf_counter() - start_time
    logger.info(f"[{req_id}] Starting streaming response for {model_name}, setup took {elapsed:.3f}s")

    async def adapted_stream() -> AsyncIterator[bytes]:
        """Wrap the upstream chunks and convert them to Anthropic SSE."""
        try:
            async for frame in adapter.adapt_stream(stream.chunks()):
                yield frame
        except UpstreamStreamError as exc:
            logger.error(f"[{req_id}] Upstream stream failed mid-flight: {exc}")
            log_error_event(model_name, "upstream_stream_error", exc.message, request_id=req_id)
            raise
        finally:
            await stream.aclose()
            tracker.finish()

    return StreamingResponse(
        adapted_stream(),
        media_type="text/event-stream",
        headers={"cache-control": "no-cache"},
    )
