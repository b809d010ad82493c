"""Lazy lookup of the httpx internals needed to reconstruct wire-level requests.

httpx keeps part of what goes on the wire out of its public API: the transport
that actually sends a request and a way to append one header collection to
another without replacing duplicates. Each of these is modelled as a
capability that is resolved once per process. Resolution tries a short list
of known strategies and keeps the first one that passes a probe; when none of
them fit the installed httpx the capability is recorded as unavailable and
callers degrade their output instead of failing.
"""

from __future__ import annotations

import enum
import logging
import threading
import typing as _t

import httpx

__all__ = [
    "AccessorTable",
    "Capability",
    "UNAVAILABLE",
    "get_accessors",
    "reset_accessors",
    "resolve",
]

logger = logging.getLogger("httptrace.resolver")


class Capability(str, enum.Enum):
    """Introspection abilities the tracer may use."""

    TRANSPORT_HANDLE = "transport-handle"
    HEADER_COLLECTION_BUILDER = "header-collection-builder"
    HEADER_COLLECTION_MERGER = "header-collection-merger"


class _Unavailable:
    """Marker for a capability that could not be resolved."""

    _instance: _Unavailable | None = None

    def __new__(cls) -> _Unavailable:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNAVAILABLE"


UNAVAILABLE = _Unavailable()

Strategy = _t.Callable[[], _t.Optional[_t.Callable[..., _t.Any]]]


# --- transport-handle ---

# ``_transport`` is where current httpx keeps it; ``transport`` covers clients
# that expose the handle publicly.
_TRANSPORT_ATTRIBUTES = ("_transport", "transport")


def _transport_attribute_strategy(name: str) -> Strategy:
    def strategy() -> _t.Callable[[_t.Any], _t.Any] | None:
        # A mock transport and no environment keep SSL and proxy setup out of the check.
        stub = httpx.MockTransport(lambda request: httpx.Response(204))
        with httpx.Client(transport=stub, trust_env=False) as probe:
            if not isinstance(getattr(probe, name, None), httpx.BaseTransport):
                return None

        def get_transport(client: _t.Any) -> _t.Any:
            transport = getattr(client, name, None)
            if isinstance(transport, (httpx.BaseTransport, httpx.AsyncBaseTransport)):
                return transport
            return None

        return get_transport

    strategy.__name__ = f"client.{name}"
    return strategy


# --- header-collection-builder ---

def _checked_builder(factory: _t.Any) -> _t.Callable[..., httpx.Headers] | None:
    if not callable(factory):
        return None
    probe = factory([(b"X-Probe", b"1"), (b"X-Probe", b"2")])
    if list(probe.raw) != [(b"X-Probe", b"1"), (b"X-Probe", b"2")]:
        return None
    return factory


def _public_builder() -> _t.Callable[..., httpx.Headers] | None:
    return _checked_builder(getattr(httpx, "Headers", None))


def _models_builder() -> _t.Callable[..., httpx.Headers] | None:
    from httpx import _models

    return _checked_builder(getattr(_models, "Headers", None))


# --- header-collection-merger ---

def _merge_entry_lists(target: httpx.Headers, source: httpx.Headers) -> httpx.Headers:
    target._list.extend(source._list)
    return target


def _merge_raw_views(target: httpx.Headers, source: httpx.Headers) -> httpx.Headers:
    return type(target)(list(target.raw) + list(source.raw))


def _checked_merger(merge: _t.Callable[[httpx.Headers, httpx.Headers], httpx.Headers]):
    merged = merge(httpx.Headers([("Accept", "a")]), httpx.Headers([("Accept", "b")]))
    if merged.get_list("accept") != ["a", "b"]:
        return None
    return merge


def _entry_list_merger():
    entries = getattr(httpx.Headers([("Accept", "a")]), "_list", None)
    if not isinstance(entries, list):
        return None
    if not all(isinstance(entry, tuple) and len(entry) == 3 for entry in entries):
        return None
    return _checked_merger(_merge_entry_lists)


def _raw_view_merger():
    return _checked_merger(_merge_raw_views)


DEFAULT_STRATEGIES: dict[Capability, tuple[Strategy, ...]] = {
    Capability.TRANSPORT_HANDLE: tuple(
        _transport_attribute_strategy(name) for name in _TRANSPORT_ATTRIBUTES
    ),
    Capability.HEADER_COLLECTION_BUILDER: (_public_builder, _models_builder),
    Capability.HEADER_COLLECTION_MERGER: (_entry_list_merger, _raw_view_merger),
}


class AccessorTable:
    """Process-wide, initialize-once table of resolved accessors.

    Each capability is resolved on first lookup and the result is kept for the
    lifetime of the table. There is no way to re-resolve a capability.
    """

    def __init__(self, strategies: _t.Mapping[Capability, _t.Sequence[Strategy]] | None = None):
        self._strategies = dict(DEFAULT_STRATEGIES if strategies is None else strategies)
        self._accessors: dict[Capability, _t.Any] = {}
        self._lock = threading.Lock()

    def get(self, capability: Capability | str) -> _t.Any:
        """Return the accessor for ``capability`` or ``UNAVAILABLE``."""
        capability = Capability(capability)
        try:
            return self._accessors[capability]
        except KeyError:
            pass
        with self._lock:
            if capability not in self._accessors:
                self._accessors[capability] = self._resolve(capability)
        return self._accessors[capability]

    def available(self, capability: Capability | str) -> bool:
        return self.get(capability) is not UNAVAILABLE

    def report(self) -> dict[str, bool]:
        """Availability of every known capability, resolving as needed."""
        return {capability.value: self.available(capability) for capability in Capability}

    def _resolve(self, capability: Capability) -> _t.Any:
        for strategy in self._strategies.get(capability, ()):
            name = getattr(strategy, "__name__", repr(strategy))
            try:
                accessor = strategy()
            except Exception as e:
                logger.debug(f"Strategy {name} for {capability.value} failed: {e}")
                continue
            if accessor is not None:
                logger.debug(f"Resolved {capability.value} via {name}")
                return accessor
        logger.debug(f"Capability {capability.value} is unavailable with httpx {httpx.__version__}")
        return UNAVAILABLE


_table: AccessorTable | None = None
_table_lock = threading.Lock()


def get_accessors() -> AccessorTable:
    """Return the process-wide accessor table, creating it on first use."""
    global _table
    if _table is None:
        with _table_lock:
            if _table is None:
                _table = AccessorTable()
    return _table


def resolve(capability: Capability | str) -> _t.Any:
    """Resolve ``capability`` against the process-wide table."""
    return get_accessors().get(capability)


def reset_accessors() -> None:
    """Drop the process-wide table. Intended for tests."""
    global _table
    with _table_lock:
        _table = None
