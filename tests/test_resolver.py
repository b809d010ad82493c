"""Tests for the resolver module."""

import httpx
import pytest

from httptrace import resolver
from httptrace.resolver import UNAVAILABLE, AccessorTable, Capability


class TestDefaultStrategies:
    """Resolution against the installed httpx."""

    def test_all_capabilities_resolve(self):
        """Test that current httpx offers every capability."""
        table = AccessorTable()

        assert table.report() == {
            "transport-handle": True,
            "header-collection-builder": True,
            "header-collection-merger": True,
        }

    def test_transport_handle_ignores_broken_environment(self, monkeypatch):
        """Test that SSL and proxy settings in the environment do not affect resolution."""
        monkeypatch.setenv("SSL_CERT_FILE", "/nonexistent/ca.pem")
        monkeypatch.setenv("HTTPS_PROXY", "not a proxy url")

        assert AccessorTable().report()["transport-handle"] is True

    def test_transport_handle_reads_client_transport(self):
        """Test that the transport accessor finds a client's transport."""
        transport = httpx.MockTransport(lambda request: httpx.Response(204))
        get_transport = AccessorTable().get(Capability.TRANSPORT_HANDLE)

        with httpx.Client(transport=transport) as client:
            assert get_transport(client) is transport

    @pytest.mark.asyncio
    async def test_transport_handle_reads_async_client_transport(self):
        """Test that the transport accessor also works on async clients."""
        transport = httpx.MockTransport(lambda request: httpx.Response(204))
        get_transport = AccessorTable().get(Capability.TRANSPORT_HANDLE)

        async with httpx.AsyncClient(transport=transport) as client:
            assert get_transport(client) is transport

    def test_merger_appends_without_replacing(self):
        """Test that merging keeps duplicate header names from both sides."""
        table = AccessorTable()
        build = table.get(Capability.HEADER_COLLECTION_BUILDER)
        merge = table.get(Capability.HEADER_COLLECTION_MERGER)

        merged = merge(build([("Accept", "a")]), build([("Accept", "b"), ("X-Other", "c")]))

        assert merged.get_list("accept") == ["a", "b"]
        assert merged["x-other"] == "c"

    def test_raw_view_merger_fallback(self):
        """Test the public-API merge strategy on its own."""
        merge = resolver._raw_view_merger()

        merged = merge(httpx.Headers([("Accept", "a")]), httpx.Headers([("Accept", "b")]))

        assert list(merged.raw) == [(b"Accept", b"a"), (b"Accept", b"b")]

    def test_merge_leaves_source_untouched(self):
        """Test that the source collection is not modified by a merge."""
        merge = AccessorTable().get(Capability.HEADER_COLLECTION_MERGER)
        source = httpx.Headers([("Accept", "b")])

        merge(httpx.Headers([("Accept", "a")]), source)

        assert list(source.raw) == [(b"Accept", b"b")]


class TestAccessorTable:
    """Caching and fallback behaviour of the accessor table."""

    def test_first_successful_strategy_wins(self):
        """Test that strategies are tried in order until one succeeds."""
        calls = []

        def missing():
            calls.append("missing")
            return None

        def broken():
            calls.append("broken")
            raise AttributeError("no such field")

        def working():
            calls.append("working")
            return len

        def never():
            calls.append("never")
            return max

        table = AccessorTable(strategies={Capability.TRANSPORT_HANDLE: (missing, broken, working, never)})

        assert table.get(Capability.TRANSPORT_HANDLE) is len
        assert calls == ["missing", "broken", "working"]

    def test_resolution_is_cached(self):
        """Test that each capability is resolved only once."""
        calls = []

        def strategy():
            calls.append(1)
            return None

        table = AccessorTable(strategies={Capability.HEADER_COLLECTION_MERGER: (strategy,)})

        assert table.get(Capability.HEADER_COLLECTION_MERGER) is UNAVAILABLE
        assert table.get("header-collection-merger") is UNAVAILABLE
        assert calls == [1]

    def test_no_strategies_means_unavailable(self, no_accessors):
        """Test that missing capabilities are reported, not raised."""
        assert not no_accessors.available(Capability.TRANSPORT_HANDLE)
        assert no_accessors.report() == {
            "transport-handle": False,
            "header-collection-builder": False,
            "header-collection-merger": False,
        }

    def test_unknown_capability_name_is_rejected(self):
        """Test that only the enumerated capabilities can be looked up."""
        with pytest.raises(ValueError):
            AccessorTable().get("response-handle")

    def test_unavailable_is_falsy_singleton(self):
        """Test the unavailable marker."""
        assert not UNAVAILABLE
        assert resolver._Unavailable() is UNAVAILABLE
        assert repr(UNAVAILABLE) == "UNAVAILABLE"


class TestProcessTable:
    """The process-wide accessor table."""

    def test_get_accessors_returns_same_table(self):
        """Test that the process-wide table is a lazy singleton."""
        assert resolver.get_accessors() is resolver.get_accessors()

    def test_reset_accessors(self):
        """Test that resetting drops the cached table."""
        first = resolver.get_accessors()
        resolver.reset_accessors()

        assert resolver.get_accessors() is not first

    def test_resolve_uses_process_table(self):
        """Test the module-level resolve helper."""
        assert resolver.resolve(Capability.HEADER_COLLECTION_BUILDER) is httpx.Headers
