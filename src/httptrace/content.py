"""Text snapshots of request, response and free-standing body content.

Request and response bodies are read through httpx's own ``read``/``aread`` so
the object keeps a buffered copy afterwards: a streamed request body is swapped
for an in-memory stream and can still be sent, and a response can still be read
by the application. Content that is only a one-shot iterator or file object is
consumed by the snapshot; trace it before using it, or trace a buffered copy.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import email.message
import logging
import typing as _t

import httpx

from .errors import BodyReadError

__all__ = [
    "asnapshot",
    "asnapshot_request",
    "asnapshot_response",
    "decode_body",
    "run_blocking",
    "snapshot",
    "snapshot_request",
    "snapshot_response",
]

logger = logging.getLogger("httptrace.content")

T = _t.TypeVar("T")

# Failures that mean the body could not be read, as opposed to a bug.
_READ_ERRORS = (httpx.StreamError, httpx.TransportError, OSError)


def run_blocking(coro: _t.Coroutine[_t.Any, _t.Any, T]) -> T:
    """Run ``coro`` to completion and return its result.

    Outside an event loop this uses ``asyncio.run``. Inside a running loop the
    coroutine is driven on a private loop in a worker thread, so streams bound
    to the caller's loop should be traced with the async entry points instead.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result()


def charset_from_headers(headers: httpx.Headers) -> str | None:
    content_type = headers.get("content-type")
    if not content_type:
        return None
    message = email.message.Message()
    message["content-type"] = content_type
    return message.get_content_charset()


def decode_body(body: bytes, encoding: str | None = None, fallback: str = "utf-8") -> str:
    """Decode ``body`` leniently, falling back when ``encoding`` is unknown."""
    if not body:
        return ""
    try:
        return body.decode(encoding or fallback, errors="replace")
    except LookupError:
        logger.debug(f"Unknown charset {encoding!r}, decoding as {fallback}")
        return body.decode(fallback, errors="replace")


# --- requests ---

def _buffered_request_body(request: httpx.Request) -> bytes | None:
    try:
        return request.content
    except httpx.RequestNotRead:
        return None


def snapshot_request(request: httpx.Request, fallback_encoding: str = "utf-8") -> str:
    """Materialize the request body as text, keeping the request sendable."""
    try:
        body = _buffered_request_body(request)
        if body is None:
            if isinstance(request.stream, _t.Iterable):
                body = request.read()
            else:
                body = run_blocking(request.aread())
    except _READ_ERRORS as e:
        raise BodyReadError(f"Failed to read body of {request.method} {request.url}: {e}") from e
    return decode_body(body, charset_from_headers(request.headers), fallback_encoding)


async def asnapshot_request(request: httpx.Request, fallback_encoding: str = "utf-8") -> str:
    """Async variant of :func:`snapshot_request`."""
    try:
        body = _buffered_request_body(request)
        if body is None:
            if isinstance(request.stream, _t.AsyncIterable):
                body = await request.aread()
            else:
                body = request.read()
    except _READ_ERRORS as e:
        raise BodyReadError(f"Failed to read body of {request.method} {request.url}: {e}") from e
    return decode_body(body, charset_from_headers(request.headers), fallback_encoding)


# --- responses ---

def _response_is_read(response: httpx.Response) -> bool:
    try:
        response.content
    except httpx.ResponseNotRead:
        return False
    return True


def snapshot_response(response: httpx.Response, fallback_encoding: str = "utf-8") -> str:
    """Materialize the response body as text, leaving it readable afterwards."""
    try:
        if not _response_is_read(response):
            if isinstance(response.stream, httpx.SyncByteStream):
                response.read()
            else:
                run_blocking(response.aread())
        body = response.content
    except _READ_ERRORS as e:
        raise BodyReadError(f"Failed to read body of {response.status_code} response: {e}") from e
    return decode_body(body, response.charset_encoding, fallback_encoding)


async def asnapshot_response(response: httpx.Response, fallback_encoding: str = "utf-8") -> str:
    """Async variant of :func:`snapshot_response`."""
    try:
        if not _response_is_read(response):
            if isinstance(response.stream, httpx.AsyncByteStream):
                await response.aread()
            else:
                response.read()
        body = response.content
    except _READ_ERRORS as e:
        raise BodyReadError(f"Failed to read body of {response.status_code} response: {e}") from e
    return decode_body(body, response.charset_encoding, fallback_encoding)


# --- free-standing content ---

Content = _t.Union[
    None, str, bytes, bytearray, httpx.Request, httpx.Response,
    _t.Iterable[bytes], _t.AsyncIterable[bytes], _t.IO[_t.Any],
]


def _join(chunks: _t.Iterable[_t.Any]) -> bytes:
    return b"".join(chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk) for chunk in chunks)


async def _ajoin(chunks: _t.AsyncIterable[_t.Any]) -> bytes:
    return _join([chunk async for chunk in chunks])


def snapshot(content: Content, encoding: str | None = None, fallback_encoding: str = "utf-8") -> str:
    """Materialize arbitrary body content as text.

    Accepts requests, responses, ``str``/``bytes``, file-like objects and
    sync or async byte iterables. ``None`` and empty content yield ``""``.
    """
    if isinstance(content, httpx.Request):
        return snapshot_request(content, fallback_encoding)
    if isinstance(content, httpx.Response):
        return snapshot_response(content, fallback_encoding)
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, (bytes, bytearray, memoryview)):
        return decode_body(bytes(content), encoding, fallback_encoding)
    try:
        if hasattr(content, "read"):
            data = content.read()
            body = data.encode("utf-8") if isinstance(data, str) else bytes(data or b"")
        elif isinstance(content, _t.Iterable):
            body = _join(content)
        elif isinstance(content, _t.AsyncIterable):
            body = run_blocking(_ajoin(content))
        else:
            raise TypeError(f"Cannot snapshot content of type {type(content).__name__}")
    except _READ_ERRORS as e:
        raise BodyReadError(f"Failed to read content: {e}") from e
    return decode_body(body, encoding, fallback_encoding)


async def asnapshot(content: Content, encoding: str | None = None, fallback_encoding: str = "utf-8") -> str:
    """Async variant of :func:`snapshot`."""
    if isinstance(content, httpx.Request):
        return await asnapshot_request(content, fallback_encoding)
    if isinstance(content, httpx.Response):
        return await asnapshot_response(content, fallback_encoding)
    if isinstance(content, _t.AsyncIterable) and not isinstance(content, _t.Iterable):
        try:
            body = await _ajoin(content)
        except _READ_ERRORS as e:
            raise BodyReadError(f"Failed to read content: {e}") from e
        return decode_body(body, encoding, fallback_encoding)
    return snapshot(content, encoding, fallback_encoding)
