"""httpx transports that trace every request and response they carry.

A tracing transport sits at httpx's public extension point, after the client
has applied its default headers and cookies. The request it sees is the one
that goes on the wire, so it is traced without a client. Response bodies are
buffered so the application can still read (or stream) them afterwards.
"""

from __future__ import annotations

import logging

import httpx

from .renderer import Tracer

__all__ = [
    "AsyncTracingTransport",
    "TracingTransport",
]

logger = logging.getLogger("httptrace.transport")


def _read_raw(response: httpx.Response) -> bytes:
    # In-memory bodies are replayable even after httpx has loaded them.
    if isinstance(response.stream, httpx.ByteStream):
        return b"".join(response.stream)
    try:
        return b"".join(response.iter_raw())
    finally:
        response.close()


async def _aread_raw(response: httpx.Response) -> bytes:
    if isinstance(response.stream, httpx.ByteStream):
        return b"".join(response.stream)
    try:
        return b"".join([chunk async for chunk in response.aiter_raw()])
    finally:
        await response.aclose()


def _rebuild(response: httpx.Response, request: httpx.Request, raw: bytes) -> httpx.Response:
    return httpx.Response(
        status_code=response.status_code,
        headers=response.headers,
        stream=httpx.ByteStream(raw),
        extensions=response.extensions,
        request=request,
    )


class TracingTransport(httpx.BaseTransport):
    """Wraps a sync httpx transport and traces each exchange."""

    def __init__(self, wrapped: httpx.BaseTransport | None = None, tracer: Tracer | None = None):
        self.wrapped = wrapped or httpx.HTTPTransport()
        self.tracer = tracer or Tracer()

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        self.tracer.trace_request(request)
        response = self.wrapped.handle_request(request)
        raw = _read_raw(response)
        logger.debug(f"Buffered {len(raw)} bytes from {request.method} {request.url}")
        self.tracer.trace_response(_rebuild(response, request, raw))
        return _rebuild(response, request, raw)

    def close(self) -> None:
        self.wrapped.close()


class AsyncTracingTransport(httpx.AsyncBaseTransport):
    """Wraps an async httpx transport and traces each exchange."""

    def __init__(self, wrapped: httpx.AsyncBaseTransport | None = None, tracer: Tracer | None = None):
        self.wrapped = wrapped or httpx.AsyncHTTPTransport()
        self.tracer = tracer or Tracer()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        await self.tracer.atrace_request(request)
        response = await self.wrapped.handle_async_request(request)
        raw = await _aread_raw(response)
        logger.debug(f"Buffered {len(raw)} bytes from {request.method} {request.url}")
        await self.tracer.atrace_response(_rebuild(response, request, raw))
        return _rebuild(response, request, raw)

    async def aclose(self) -> None:
        await self.wrapped.aclose()
