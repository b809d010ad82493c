"""Global pytest configuration and fixtures."""

import io
import os
import sys
import logging
import pytest

# Add the local 'src' directory to sys.path so tests can import the package
ROOT_DIR = os.path.dirname(os.path.dirname(__file__))
SRC_DIR = os.path.join(ROOT_DIR, "src")
sys.path.insert(0, SRC_DIR)

from httptrace.resolver import AccessorTable, reset_accessors

# Configure logging for tests
logging.basicConfig(level=logging.INFO)


@pytest.fixture
def sink():
    """A text sink that collects trace output."""
    return io.StringIO()


@pytest.fixture
def trace_lines(sink):
    """Return the lines written to the sink so far."""
    def _trace_lines():
        return sink.getvalue().splitlines()
    return _trace_lines


@pytest.fixture
def no_accessors():
    """An accessor table on which every capability is unavailable."""
    return AccessorTable(strategies={})


@pytest.fixture(autouse=True)
def fresh_accessors():
    """Make each test resolve capabilities from scratch."""
    reset_accessors()
    yield
    reset_accessors()
