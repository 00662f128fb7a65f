"""Command line interface for kyhttp using Typer."""

import asyncio
import json
from typing import Any, Optional

import typer

from .client import KyClient
from .config import ClientConfig, get_config
from .exceptions import RetriesExhausted
from .logging_config import setup_logging
from .request import RequestBuilder
from .response import Response

cli = typer.Typer(name="kyhttp", help="Fluent HTTP client with retries and batches")


def build_client(config: ClientConfig) -> KyClient:
    """Create the client used by CLI commands."""
    return KyClient(config)


def _split_pairs(values: list[str], separator: str, option: str) -> dict[str, str]:
    pairs = {}
    for value in values:
        key, sep, rest = value.partition(separator)
        if not sep or not key:
            raise typer.BadParameter(f"Expected KEY{separator}VALUE, got {value!r}", param_hint=option)
        pairs[key.strip()] = rest.strip()
    return pairs


def _echo_response(response: Response, decode: bool) -> None:
    typer.echo(f"HTTP {response.status} ({response.attempts} attempt(s))")
    if response.transport_error is not None:
        typer.echo(f"Transport error: {response.transport_error.message}")
        return
    if decode:
        typer.echo(json.dumps(response.json(), indent=2, ensure_ascii=False))
    else:
        typer.echo(response.text)


@cli.command()
def send(
    url: str = typer.Argument(..., help="Request URL"),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method"),
    header: Optional[list[str]] = typer.Option(None, "--header", "-H", help="Header as 'Key: Value'"),
    query: Optional[list[str]] = typer.Option(None, "--query", "-q", help="Query parameter as key=value"),
    json_body: Optional[str] = typer.Option(None, "--json", help="JSON request body"),
    retries: Optional[int] = typer.Option(
        None, "--retry", "-r", help="Additional attempts after the first (default: config)"
    ),
    decode: bool = typer.Option(False, "--decode", help="Pretty-print the body as JSON"),
    log_level: Optional[str] = typer.Option(None, help="Log level (DEBUG, INFO, WARNING, ERROR)"),
):
    """Send a single request."""
    config = get_config()
    setup_logging(log_level or config.logging.level, config.logging.format)

    builder = (
        RequestBuilder(
            retries=config.retry.default_retries if retries is None else retries
        )
        .method(method, url)
        .headers(_split_pairs(header or [], ":", "--header"))
        .query(_split_pairs(query or [], "=", "--query"))
    )
    if json_body is not None:
        try:
            payload: Any = json.loads(json_body)
        except ValueError as e:
            raise typer.BadParameter(f"Invalid JSON: {e}", param_hint="--json") from e
        builder.json(payload)
    spec = builder.build()

    async def run() -> Response:
        async with build_client(config) as client:
            return await client.send(spec)

    try:
        response = asyncio.run(run())
    except RetriesExhausted as e:
        typer.echo(f"Error: {e.message}", err=True)
        if e.response is not None:
            typer.echo(f"Last status: {e.response.status}", err=True)
        raise typer.Exit(code=1) from e

    _echo_response(response, decode)


@cli.command()
def batch(
    urls: list[str] = typer.Argument(..., help="URLs to GET concurrently"),
    retries: Optional[int] = typer.Option(
        None, "--retry", "-r", help="Additional attempts per request (default: config)"
    ),
    ordered: bool = typer.Option(False, help="Print results in argument order"),
    log_level: Optional[str] = typer.Option(None, help="Log level (DEBUG, INFO, WARNING, ERROR)"),
):
    """GET several URLs as one batch."""
    config = get_config()
    setup_logging(log_level or config.logging.level, config.logging.format)

    async def run() -> list[Response]:
        async with build_client(config) as client:
            for url in urls:
                builder = client.get(url)
                if retries is not None:
                    builder.retry(retries)
                builder.add_to_batch()
            return await client.send_batch(ordered=ordered)

    responses = asyncio.run(run())
    for response in responses:
        url = response.request.target_url if response.request else "?"
        typer.echo(f"[{response.index}] {response.status} {url} ({response.attempts} attempt(s))")

    if any(not response.accepted for response in responses):
        raise typer.Exit(code=1)


@cli.command()
def config_info():
    """Display current configuration."""
    config = get_config()

    typer.echo("Current kyhttp Configuration:")
    typer.echo(f"  Base URL: {config.base_url or '(none)'}")
    typer.echo(f"  Follow Redirects: {config.follow_redirects}")
    typer.echo(f"  Max Redirects: {config.max_redirects}")
    typer.echo(f"  Timeout: {config.timeout if config.timeout is not None else 'none'}")
    typer.echo(f"  Default Retries: {config.retry.default_retries}")
    typer.echo(f"  Backoff: {config.retry.min_wait_seconds}s-{config.retry.max_wait_seconds}s")
    typer.echo(f"  Poll Interval: {config.batch.poll_interval}s")
    typer.echo(f"  Max Concurrency: {config.batch.max_concurrency}")
    typer.echo(f"  Log Level: {config.logging.level}")
    typer.echo(f"  Log Format: {config.logging.format}")


if __name__ == "__main__":
    cli()
