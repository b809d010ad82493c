"""Synthesis of the Cookie header a client would attach to a request."""

from __future__ import annotations

import logging
import typing as _t

import httpx

from .resolver import UNAVAILABLE, AccessorTable, Capability, get_accessors

__all__ = [
    "COOKIES_UNAVAILABLE",
    "DegradationNotice",
    "cookie_handling_enabled",
    "synthesize_cookie_header",
]

logger = logging.getLogger("httptrace.cookies")


class DegradationNotice:
    """Returned when the cookie header cannot be determined.

    This is distinct from ``None``, which means no cookie matched.
    """

    def __repr__(self) -> str:
        return "COOKIES_UNAVAILABLE"


COOKIES_UNAVAILABLE = DegradationNotice()


def cookie_handling_enabled(client: _t.Any, transport: _t.Any) -> bool:
    """Whether ``client`` will attach cookies to requests sent over ``transport``."""
    if transport is None:
        return False
    return isinstance(getattr(client, "cookies", None), httpx.Cookies)


def synthesize_cookie_header(
    client: httpx.Client | httpx.AsyncClient | None,
    url: httpx.URL | str,
    method: str = "GET",
    accessors: AccessorTable | None = None,
) -> str | None | DegradationNotice:
    """Return the Cookie header value the client's jar yields for ``url``.

    Domain, path, secure and expiry matching are left to the cookie jar. The
    jar is applied to a throwaway request so the caller's request never gains
    a header.

    Returns:
        The header value, ``None`` when there is no client, cookie handling is
        off, or nothing matched, and ``COOKIES_UNAVAILABLE`` when the client's
        transport cannot be located.
    """
    if client is None:
        return None

    table = accessors or get_accessors()
    get_transport = table.get(Capability.TRANSPORT_HANDLE)
    if get_transport is UNAVAILABLE:
        logger.debug("Transport handle is unavailable, cookies cannot be traced")
        return COOKIES_UNAVAILABLE

    if not cookie_handling_enabled(client, get_transport(client)):
        return None

    probe = httpx.Request(method, url)
    client.cookies.set_cookie_header(probe)
    return probe.headers.get("cookie") or None
