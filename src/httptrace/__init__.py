"""Wire-level tracing of httpx requests and responses.

This package reconstructs the headers and body an httpx request will actually
carry, including the client's default headers, the Host header and the cookies
the client's jar would attach, and writes them as human-readable trace blocks.
"""

from .config import TraceConfig, load_config
from .errors import BodyReadError, TraceError
from .renderer import Tracer, trace_content, trace_request, trace_response, trace_uri
from .resolver import Capability, get_accessors
from .transport import AsyncTracingTransport, TracingTransport

# Version of the httptrace package
version: str = '0.1.0'

__all__: list[str] = [
    'AsyncTracingTransport',
    'BodyReadError',
    'Capability',
    'TraceConfig',
    'TraceError',
    'Tracer',
    'TracingTransport',
    'get_accessors',
    'load_config',
    'trace_content',
    'trace_request',
    'trace_response',
    'trace_uri',
    'version',
]
