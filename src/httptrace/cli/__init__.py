"""Command-line interface for httptrace."""

from .commands import cli, main

__all__ = [
    "cli",
    "main",
]
