"""Tests for the content module."""

import asyncio
import io

import httpx
import pytest

from httptrace.content import (
    asnapshot,
    asnapshot_request,
    asnapshot_response,
    decode_body,
    run_blocking,
    snapshot,
    snapshot_request,
    snapshot_response,
)
from httptrace.errors import BodyReadError, TraceError


async def _chunks(*parts):
    for part in parts:
        yield part


class TestDecodeBody:
    """Lenient body decoding."""

    def test_empty(self):
        assert decode_body(b"") == ""

    def test_declared_encoding(self):
        assert decode_body("café".encode("latin-1"), "latin-1") == "café"

    def test_unknown_encoding_falls_back(self):
        assert decode_body(b"plain", "no-such-codec") == "plain"

    def test_invalid_bytes_are_replaced(self):
        assert decode_body(b"\xff", "utf-8") == "�"


class TestRequestSnapshot:
    """Snapshots of request bodies."""

    def test_buffered_body(self):
        request = httpx.Request("POST", "https://example.org/", content=b"hello")

        assert snapshot_request(request) == "hello"

    def test_no_body(self):
        request = httpx.Request("GET", "https://example.org/")

        assert snapshot_request(request) == ""

    def test_charset_from_content_type(self):
        """Test that the declared charset is used for decoding."""
        request = httpx.Request(
            "POST",
            "https://example.org/",
            headers={"Content-Type": "text/plain; charset=latin-1"},
            content="café".encode("latin-1"),
        )

        assert snapshot_request(request) == "café"

    def test_streamed_body_stays_sendable(self):
        """Test that a one-shot sync stream is buffered in place."""
        request = httpx.Request("POST", "https://example.org/", content=iter([b"he", b"llo"]))

        assert snapshot_request(request) == "hello"
        assert request.content == b"hello"
        assert b"".join(request.stream) == b"hello"

    def test_async_body_from_sync_code(self):
        """Test that an async body is read to completion by the sync call."""
        request = httpx.Request("POST", "https://example.org/", content=_chunks(b"a", b"sync"))

        assert snapshot_request(request) == "async"
        assert request.content == b"async"

    @pytest.mark.asyncio
    async def test_async_body(self):
        request = httpx.Request("POST", "https://example.org/", content=_chunks(b"x", b"y"))

        assert await asnapshot_request(request) == "xy"
        assert request.content == b"xy"

    def test_read_failure_propagates(self):
        """Test that an I/O fault while reading is raised, not hidden."""
        def broken():
            yield b"partial"
            raise OSError("connection reset")

        request = httpx.Request("POST", "https://example.org/", content=broken())

        with pytest.raises(BodyReadError) as excinfo:
            snapshot_request(request)

        assert isinstance(excinfo.value.__cause__, OSError)
        assert isinstance(excinfo.value, TraceError)


class TestResponseSnapshot:
    """Snapshots of response bodies."""

    def test_buffered_body(self):
        response = httpx.Response(200, content=b"done")

        assert snapshot_response(response) == "done"

    def test_streamed_body_remains_readable(self):
        """Test that the application can still read the body afterwards."""
        response = httpx.Response(200, content=iter([b"par", b"ts"]))

        assert snapshot_response(response) == "parts"
        assert response.read() == b"parts"
        assert response.text == "parts"

    def test_response_charset(self):
        response = httpx.Response(
            200,
            headers={"Content-Type": "text/plain; charset=latin-1"},
            content="naïve".encode("latin-1"),
        )

        assert snapshot_response(response) == "naïve"

    def test_fallback_encoding_without_charset(self):
        response = httpx.Response(200, content="naïve".encode("latin-1"))

        assert snapshot_response(response, "latin-1") == "naïve"
        assert snapshot(response, fallback_encoding="latin-1") == "naïve"

    @pytest.mark.asyncio
    async def test_async_fallback_encoding(self):
        response = httpx.Response(200, content=_chunks("naïve".encode("latin-1")))

        assert await asnapshot_response(response, "latin-1") == "naïve"

    def test_consumed_stream_raises(self):
        """Test that a body already consumed elsewhere cannot be silently empty."""
        response = httpx.Response(200, content=iter([b"gone"]))
        list(response.iter_raw())

        with pytest.raises(BodyReadError) as excinfo:
            snapshot_response(response)

        assert isinstance(excinfo.value.__cause__, httpx.StreamConsumed)

    def test_async_stream_from_sync_code(self):
        response = httpx.Response(200, content=_chunks(b"as", b"ync"))

        assert snapshot_response(response) == "async"

    @pytest.mark.asyncio
    async def test_async_stream(self):
        response = httpx.Response(200, content=_chunks(b"a", b"b"))

        assert await asnapshot_response(response) == "ab"
        assert response.content == b"ab"


class TestSnapshot:
    """Snapshots of free-standing content."""

    def test_none_and_empty(self):
        assert snapshot(None) == ""
        assert snapshot(b"") == ""

    def test_text_and_bytes(self):
        assert snapshot("text") == "text"
        assert snapshot(b"bytes") == "bytes"
        assert snapshot(bytearray(b"array")) == "array"

    def test_explicit_encoding(self):
        assert snapshot("über".encode("utf-16"), encoding="utf-16") == "über"

    def test_file_like(self):
        assert snapshot(io.BytesIO(b"from file")) == "from file"
        assert snapshot(io.StringIO("from text file")) == "from text file"

    def test_iterable_is_consumed(self):
        chunks = iter([b"one", b"two"])

        assert snapshot(chunks) == "onetwo"
        assert list(chunks) == []

    def test_request_and_response_delegate(self):
        assert snapshot(httpx.Request("POST", "https://example.org/", content=b"req")) == "req"
        assert snapshot(httpx.Response(200, content=b"res")) == "res"

    def test_unsupported_type(self):
        with pytest.raises(TypeError):
            snapshot(42)

    @pytest.mark.asyncio
    async def test_async_iterable(self):
        assert await asnapshot(_chunks(b"async ", b"content")) == "async content"


class TestRunBlocking:
    """Blocking on coroutines from sync code."""

    def test_outside_loop(self):
        async def answer():
            return 42

        assert run_blocking(answer()) == 42

    @pytest.mark.asyncio
    async def test_inside_running_loop(self):
        """Test that a running loop does not prevent the blocking call."""
        async def answer():
            await asyncio.sleep(0)
            return "done"

        assert run_blocking(answer()) == "done"
