"""Exceptions raised by httptrace.

Only failures that make a trace untrustworthy surface as exceptions. Missing
introspection points, unmatched cookies and malformed query fragments are
reported inside the rendered trace instead.
"""

__all__ = [
    "TraceError",
    "BodyReadError",
]


class TraceError(Exception):
    """Base class for exceptions raised while tracing."""
    pass


class BodyReadError(TraceError):
    """Raised when a request or response body cannot be materialized.

    The original exception is chained as ``__cause__``.
    """
    pass
