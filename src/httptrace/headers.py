"""Reconstruction of the header block a request will carry on the wire."""

from __future__ import annotations

import logging

import httpx

from .resolver import UNAVAILABLE, AccessorTable, Capability, get_accessors

__all__ = [
    "HEADERS_UNAVAILABLE",
    "DegradedMarker",
    "merge_headers",
    "synthesize_host",
]

logger = logging.getLogger("httptrace.headers")


class DegradedMarker:
    """Returned instead of a header list when headers cannot be merged."""

    def __repr__(self) -> str:
        return "HEADERS_UNAVAILABLE"


HEADERS_UNAVAILABLE = DegradedMarker()


def synthesize_host(url: httpx.URL) -> str:
    """Build a Host value from the authority of ``url``.

    httpx normalizes away default ports, so this is ``host`` or ``host:port``.
    """
    return url.netloc.decode("ascii")


def merge_headers(
    request: httpx.Request,
    client: httpx.Client | httpx.AsyncClient | None = None,
    accessors: AccessorTable | None = None,
) -> list[tuple[str, str]] | DegradedMarker:
    """Compute the ordered ``(name, value)`` pairs that will be transmitted.

    The block starts with a single Host line. The request's own Host value is
    used when it has one, since that is what httpx sends; otherwise the value
    is synthesized from the URL authority. A request Host that differs from the
    URL authority deliberately wins over it. The request's remaining headers
    follow in order, one pair per value. The client's default headers are
    appended last and are never deduplicated against the request's headers.

    Args:
        request: The request being traced. It is not modified.
        client: Optional owning client whose ``headers`` are appended.
        accessors: Accessor table to use; defaults to the process-wide one.

    Returns:
        The merged pairs, or ``HEADERS_UNAVAILABLE`` when the installed httpx
        does not offer a way to build and merge header collections.
    """
    table = accessors or get_accessors()
    build = table.get(Capability.HEADER_COLLECTION_BUILDER)
    merge = table.get(Capability.HEADER_COLLECTION_MERGER)
    if build is UNAVAILABLE or merge is UNAVAILABLE:
        logger.debug("Header merge is unavailable, emitting degraded header block")
        return HEADERS_UNAVAILABLE

    own_hosts = request.headers.get_list("host")
    host = own_hosts[0] if own_hosts else synthesize_host(request.url)

    merged = build([("Host", host)] if host else [])
    merged = merge(merged, build([(k, v) for k, v in request.headers.raw if k.lower() != b"host"]))

    default_headers = getattr(client, "headers", None) if client is not None else None
    if default_headers:
        merged = merge(merged, build(list(default_headers.raw)))

    encoding = merged.encoding
    return [(k.decode(encoding), v.decode(encoding)) for k, v in merged.raw]
