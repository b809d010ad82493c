"""CLI commands for httptrace.

``httptrace send`` performs one request through a tracing transport and prints
the request and response trace blocks to stderr. ``httptrace uri`` breaks a
URI's query string into decoded parameters.
"""

from __future__ import annotations

import logging
import sys
import typing as _t
from pathlib import Path

import click
import httpx
from dotenv import load_dotenv

from ..config import load_config
from ..errors import TraceError
from ..renderer import Tracer
from ..resolver import get_accessors
from ..transport import TracingTransport

__all__ = [
    "cli",
    "main",
]

# Load environment variables
load_dotenv()


def parse_pairs(values: _t.Iterable[str], separator: str, what: str) -> list[tuple[str, str]]:
    """Split ``NAME<sep>VALUE`` options into pairs."""
    pairs = []
    for value in values:
        name, sep, rest = value.partition(separator)
        if not sep or not name.strip():
            raise click.BadParameter(f"Expected NAME{separator}VALUE, got '{value}'", param_hint=what)
        pairs.append((name.strip(), rest.strip()))
    return pairs


@click.group()
@click.option("--config-file", type=click.Path(exists=True, path_type=Path), help="Specify custom config file path")
@click.option("-v", "--verbose", is_flag=True, help="Log tracer diagnostics to stderr")
@click.pass_context
def cli(ctx: click.Context, config_file: Path | None, verbose: bool) -> None:
    """httptrace - show the wire-level form of HTTP requests and responses.

    \b
    EXAMPLES:
      httptrace send https://example.org
      httptrace send -X POST -H "Content-Type: application/json" -d '{"a": 1}' https://example.org
      httptrace uri "https://example.org/search?q=two%20words"
    """
    try:
        config = load_config(config_file)
    except ValueError as e:
        raise click.ClickException(str(e))

    logging.basicConfig(level=logging.DEBUG if verbose else config.log_level)
    ctx.obj = config


@cli.command()
@click.argument("url")
@click.option("-X", "--method", default="GET", show_default=True, help="HTTP method")
@click.option("-H", "--header", "headers", multiple=True, help="Request header as 'Name: value'")
@click.option("-d", "--data", help="Request body")
@click.option("--cookie", "cookies", multiple=True, help="Cookie for the client jar as 'name=value'")
@click.option("--follow-redirects", is_flag=True, help="Follow redirects, tracing each hop")
@click.option("--timeout", default=30.0, show_default=True, help="Request timeout in seconds")
@click.pass_obj
def send(
    config,
    url: str,
    method: str,
    headers: tuple[str, ...],
    data: str | None,
    cookies: tuple[str, ...],
    follow_redirects: bool,
    timeout: float,
) -> None:
    """Send one request and trace it and its response."""
    tracer = Tracer(config=config)
    transport = TracingTransport(tracer=tracer)
    try:
        with httpx.Client(
            transport=transport,
            cookies=dict(parse_pairs(cookies, "=", "--cookie")),
            follow_redirects=follow_redirects,
            timeout=timeout,
        ) as client:
            response = client.request(
                method.upper(),
                url,
                headers=parse_pairs(headers, ":", "--header"),
                content=data.encode("utf-8") if data is not None else None,
            )
    except (httpx.HTTPError, httpx.InvalidURL, TraceError) as e:
        raise click.ClickException(f"{method.upper()} {url} failed: {e}")

    click.echo(f"{response.status_code} {response.reason_phrase}")


@cli.command()
@click.argument("url")
def uri(url: str) -> None:
    """Print a URI and its decoded query parameters."""
    try:
        Tracer(log=sys.stdout).trace_uri(url)
    except httpx.InvalidURL as e:
        raise click.BadParameter(str(e), param_hint="URL")


@cli.command()
def capabilities() -> None:
    """Show which httpx introspection points are available."""
    for name, available in get_accessors().report().items():
        click.echo(f"{name}: {'available' if available else 'unavailable'}")


def main() -> None:
    """Main entry point for the CLI."""
    cli()
