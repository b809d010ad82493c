#!/usr/bin/env python3
"""
Trace Example for httptrace

This example traces a request before it is sent, sends it with the same
client, then traces the response.

Usage:
    python examples/trace_demo.py [URL]
"""

import logging
import sys
from pathlib import Path

import httpx

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from httptrace import trace_request, trace_response, trace_uri

# Set up logging
logging.basicConfig(level=logging.INFO)


def main() -> None:
    url = sys.argv[1] if len(sys.argv) > 1 else "https://httpbin.org/get?greeting=hello%20world"

    trace_uri(url)

    with httpx.Client(headers={"X-Demo": "httptrace"}, cookies={"demo": "1"}) as client:
        # build_request applies the client's default headers and cookies, so the
        # request is traced on its own.
        request = client.build_request("GET", url)
        trace_request(request)

        response = client.send(request)
        trace_response(response)

    # A standalone request traced with its client shows what the client would add.
    with httpx.Client(headers={"X-Demo": "httptrace"}, cookies={"demo": "1"}) as client:
        trace_request(httpx.Request("GET", url), client)


if __name__ == "__main__":
    main()
