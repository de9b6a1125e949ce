"""Transport to the OpenAI-compatible Chat Completions upstream.

Owns the HTTP side of a call: URL, headers, timeouts, status handling and
decoding the upstream SSE stream into parsed chunks. Translation lives in
``msgbridge.messages``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Mapping, Optional

import httpx

from .backend import Backend, build_outbound_headers, format_httpx_error
from .exceptions import UpstreamError, UpstreamHTTPError, UpstreamStreamError
from .sse import DONE_SENTINEL, SSEDecoder, SSEEvent, detect_sse_error_payload

logger = logging.getLogger("msgbridge")

CHAT_COMPLETIONS_PATH = "/chat/completions"
_DONE = object()


class UpstreamStream:
    """An open streaming response whose chunks have not been consumed yet."""

    def __init__(self, client: httpx.AsyncClient, response: httpx.Response, url: str, backend: Backend) -> None:
        self._client = client
        self._response = response
        self._url = url
        self._backend = backend
        self._closed = False

    @property
    def status_code(self) -> int:
        return self._response.status_code

    async def chunks(self) -> AsyncIterator[dict[str, Any]]:
        """Yield parsed Chat Completions chunks until ``[DONE]`` or EOF.

        Raises:
            UpstreamStreamError: on transport failure or an in-band error event.
        """
        decoder = SSEDecoder()
        try:
            async for raw in self._response.aiter_bytes():
                for event in decoder.feed(raw):
                    chunk = self._decode_event(event)
                    if chunk is _DONE:
                        return
                    if chunk is not None:
                        yield chunk
            for event in decoder.flush():
                chunk = self._decode_event(event)
                if chunk is _DONE:
                    return
                if chunk is not None:
                    yield chunk
        except httpx.HTTPError as exc:
            detail = format_httpx_error(exc, self._backend, self._url)
            logger.error("Upstream stream from %s failed: %s", self._url, detail)
            raise UpstreamStreamError(detail) from exc
        finally:
            await self.aclose()

    def _decode_event(self, event: SSEEvent) -> Any:
        data = event.data
        if data is None or not data.strip():
            return None
        if data.strip() == DONE_SENTINEL:
            return _DONE
        try:
            parsed = json.loads(data)
        except json.JSONDecodeError:
            logger.debug("Skipping unparseable upstream chunk: %s", data[:100])
            return None

        error = detect_sse_error_payload(parsed)
        if error:
            logger.warning("Detected SSE error in stream from %s: %s", self._url, error)
            raise UpstreamStreamError(error)
        if not isinstance(parsed, dict):
            return None
        return parsed

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.debug("Closing stream for %s", self._url)
        await self._response.aclose()
        await self._client.aclose()


class OpenAIUpstream:
    """Sends translated requests to the configured backend."""

    def __init__(
        self,
        backend: Backend,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.backend = backend
        self._transport = transport

    def _headers(self, api_key: str) -> dict[str, str]:
        return build_outbound_headers(self.backend.api_key or api_key)

    async def create_chat_completion(
        self, payload: Mapping[str, Any], api_key: str = ""
    ) -> dict[str, Any]:
        """Send a non-streaming request and return the decoded response body."""
        url = self.backend.build_url(CHAT_COMPLETIONS_PATH)
        body = json.dumps({**payload, "stream": False}, ensure_ascii=False).encode("utf-8")

        logger.debug("Initiating non-streaming request to %s", url)
        try:
            async with httpx.AsyncClient(
                timeout=self.backend.timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                resp = await client.post(url, headers=self._headers(api_key), content=body)
        except httpx.HTTPError as exc:
            detail = format_httpx_error(exc, self.backend, url)
            logger.error("Upstream request to %s failed: %s", url, detail)
            raise UpstreamError(detail) from exc

        logger.debug("Received response from %s: status %s", url, resp.status_code)
        if resp.status_code >= 400:
            raise UpstreamHTTPError(
                f"upstream returned status {resp.status_code}",
                status_code=resp.status_code,
                body=resp.content,
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamError(f"upstream returned invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise UpstreamError("upstream response must be a JSON object")
        return data

    async def open_chat_stream(
        self, payload: Mapping[str, Any], api_key: str = ""
    ) -> UpstreamStream:
        """Send a streaming request and return once the status line is known.

        Raises:
            UpstreamError: if the request cannot be sent.
            UpstreamHTTPError: if the upstream answers with an error status.
        """
        url = self.backend.build_url(CHAT_COMPLETIONS_PATH)
        body = json.dumps({**payload, "stream": True}, ensure_ascii=False).encode("utf-8")
        timeout = self.backend.timeout
        stream_timeout = httpx.Timeout(connect=timeout, read=None, write=timeout, pool=timeout)

        client = httpx.AsyncClient(
            timeout=stream_timeout, transport=self._transport, follow_redirects=True
        )
        try:
            request = client.build_request("POST", url, headers=self._headers(api_key), content=body)
            logger.debug("Sending streaming request to %s", url)
            resp = await client.send(request, stream=True)
        except httpx.HTTPError as exc:
            await client.aclose()
            detail = format_httpx_error(exc, self.backend, url)
            logger.error("Failed to send streaming request to %s: %s", url, detail)
            raise UpstreamError(detail) from exc

        if resp.status_code >= 400:
            logger.warning("Streaming request to %s returned error status %s", url, resp.status_code)
            data = await resp.aread()
            await resp.aclose()
            await client.aclose()
            raise UpstreamHTTPError(
                f"upstream returned status {resp.status_code}",
                status_code=resp.status_code,
                body=data,
            )

        logger.info("Streaming request to %s successful, status %s", url, resp.status_code)
        return UpstreamStream(client, resp, url, self.backend)
