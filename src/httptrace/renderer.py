"""Rendering of requests, responses, content and URIs as trace blocks.

A :class:`Tracer` borrows a text sink and a :class:`TraceConfig` and writes one
self-delimited block per call. Bodies are materialized before anything is
written, so a body that cannot be read raises without leaving a half-written
block behind.
"""

from __future__ import annotations

import logging
import sys
import typing as _t
from urllib.parse import unquote

import httpx

from .config import TraceConfig
from .content import (
    Content,
    asnapshot,
    asnapshot_request,
    asnapshot_response,
    snapshot,
    snapshot_request,
    snapshot_response,
)
from .cookies import COOKIES_UNAVAILABLE, synthesize_cookie_header
from .headers import HEADERS_UNAVAILABLE, merge_headers
from .resolver import AccessorTable

__all__ = [
    "Tracer",
    "query_parameters",
    "trace_content",
    "trace_request",
    "trace_response",
    "trace_uri",
]

logger = logging.getLogger("httptrace.renderer")

Client = _t.Union[httpx.Client, httpx.AsyncClient]


def query_parameters(url: httpx.URL | str) -> list[tuple[str, str]]:
    """Split the query of ``url`` into ``(key, decoded value)`` pairs.

    Segments without ``=`` or with an empty key are skipped. Values are
    percent-decoded; ``+`` is left as is.
    """
    query = httpx.URL(url).query.decode("ascii", errors="replace")
    params = []
    for part in query.split("&"):
        eq = part.find("=")
        if eq > 0:
            params.append((part[:eq], unquote(part[eq + 1:])))
    return params


class Tracer:
    """Writes trace blocks for httpx requests and responses to a text sink.

    Args:
        log: Text sink. Defaults to ``sys.stderr`` as it is at write time.
        config: Rendering options.
        accessors: Accessor table for httpx introspection; defaults to the
            process-wide table.
    """

    def __init__(
        self,
        log: _t.TextIO | None = None,
        config: TraceConfig | None = None,
        accessors: AccessorTable | None = None,
    ):
        self.log = log
        self.config = config or TraceConfig()
        self.accessors = accessors

    @property
    def sink(self) -> _t.TextIO:
        return self.log if self.log is not None else sys.stderr

    def _emit(self, lines: _t.Iterable[str]) -> None:
        sink = self.sink
        for line in lines:
            sink.write(line + "\n")
        sink.flush()

    # --- requests ---

    def trace_request(self, request: httpx.Request, client: Client | None = None) -> None:
        """Write the effective wire form of ``request``.

        Args:
            request: The request to trace. Its headers and URL are not changed
                and a streamed body is buffered so it can still be sent.
            client: Optional owning client contributing default headers and
                cookies.

        Raises:
            BodyReadError: If the request body cannot be read.
        """
        body = snapshot_request(request, self.config.fallback_encoding)
        self._emit(self._request_lines(request, client, body))

    async def atrace_request(self, request: httpx.Request, client: Client | None = None) -> None:
        """Async variant of :meth:`trace_request`."""
        body = await asnapshot_request(request, self.config.fallback_encoding)
        self._emit(self._request_lines(request, client, body))

    def _request_lines(self, request: httpx.Request, client: Client | None, body: str) -> list[str]:
        config = self.config
        target = request.url.raw_path.decode("ascii")
        lines = [config.request_banner, f"{request.method} {target} {config.http_version}"]

        headers = merge_headers(request, client, self.accessors)
        if headers is HEADERS_UNAVAILABLE:
            logger.debug(f"Header block for {request.method} {request.url} is degraded")
            lines.append(config.headers_unavailable_notice)
        else:
            lines.extend(f"{name}: {value}" for name, value in headers)

        if client is not None and config.trace_cookies:
            cookie = synthesize_cookie_header(client, request.url, request.method, self.accessors)
            if cookie is COOKIES_UNAVAILABLE:
                logger.debug(f"Cookie header for {request.method} {request.url} is degraded")
                lines.append(config.cookies_unavailable_notice)
            elif cookie:
                lines.append(f"Cookie: {cookie}")

        lines.append("")
        if body:
            lines.append(body)
        lines.append(config.closing_banner)
        return lines

    # --- responses ---

    def trace_response(self, response: httpx.Response, client: Client | None = None) -> None:
        """Write ``response`` as status line, headers, blank line and body.

        The body is read first and stays readable afterwards. ``client`` is
        accepted for symmetry with :meth:`trace_request` and is unused.

        Raises:
            BodyReadError: If the response body cannot be read.
        """
        body = snapshot_response(response, self.config.fallback_encoding)
        self._emit(self._response_lines(response, body))

    async def atrace_response(self, response: httpx.Response, client: Client | None = None) -> None:
        """Async variant of :meth:`trace_response`."""
        body = await asnapshot_response(response, self.config.fallback_encoding)
        self._emit(self._response_lines(response, body))

    def _response_lines(self, response: httpx.Response, body: str) -> list[str]:
        encoding = response.headers.encoding
        lines = [self.config.response_banner, f"{response.status_code} {response.reason_phrase}"]
        lines.extend(f"{k.decode(encoding)}: {v.decode(encoding)}" for k, v in response.headers.raw)
        lines.append("")
        lines.append(body)
        lines.append(self.config.closing_banner)
        return lines

    # --- content and URIs ---

    def trace_content(self, content: Content, encoding: str | None = None) -> None:
        """Write a body on its own. One-shot iterators and files are consumed."""
        body = snapshot(content, encoding, self.config.fallback_encoding)
        self._emit([self.config.content_banner, body, self.config.closing_banner])

    async def atrace_content(self, content: Content, encoding: str | None = None) -> None:
        body = await asnapshot(content, encoding, self.config.fallback_encoding)
        self._emit([self.config.content_banner, body, self.config.closing_banner])

    def trace_uri(self, uri: httpx.URL | str) -> None:
        """Write ``uri`` followed by one ``key = value`` line per query parameter."""
        url = httpx.URL(uri)
        self._emit([str(url)] + [f"{key} = {value}" for key, value in query_parameters(url)])


def trace_request(
    request: httpx.Request,
    client: Client | None = None,
    log: _t.TextIO | None = None,
    config: TraceConfig | None = None,
) -> None:
    Tracer(log, config).trace_request(request, client)


def trace_response(
    response: httpx.Response,
    client: Client | None = None,
    log: _t.TextIO | None = None,
    config: TraceConfig | None = None,
) -> None:
    Tracer(log, config).trace_response(response, client)


def trace_content(
    content: Content,
    encoding: str | None = None,
    log: _t.TextIO | None = None,
    config: TraceConfig | None = None,
) -> None:
    Tracer(log, config).trace_content(content, encoding)


def trace_uri(
    uri: httpx.URL | str,
    log: _t.TextIO | None = None,
    config: TraceConfig | None = None,
) -> None:
    Tracer(log, config).trace_uri(uri)
