"""Command-line interface for extensible_request."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Optional, Union

from rich.console import Console
from rich.markup import escape

from . import __version__
from .client import get, post
from .errors import TRANSPORT_EXCEPTIONS, ExtensibleRequestError, RequestError
from .http.protocols import DecodedResult
from .logging_config import setup_logging
from .models.config import ClientConfig, QueryStringOptions, RetryPolicy, TransportOptions
from .models.events import EventType, RequestEvent


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "url",
        help="Absolute URL to request",
    )
    parser.add_argument(
        "--header",
        "-H",
        action="append",
        default=[],
        metavar="'NAME: VALUE'",
        help="Request header (repeatable)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="YAML file with transport, query_string and retry settings",
    )

    # Network settings
    network_group = parser.add_argument_group("network settings")
    network_group.add_argument(
        "--retries",
        type=int,
        default=None,
        help="Retry attempts for transient failures (default: 3)",
    )
    network_group.add_argument(
        "--interval",
        type=float,
        default=None,
        metavar="MS",
        help="Initial wait between attempts in milliseconds, doubled per retry (default: 200)",
    )
    network_group.add_argument(
        "--timeout",
        type=float,
        default=None,
        metavar="MS",
        help="Socket read idle timeout in milliseconds",
    )
    network_group.add_argument(
        "--insecure",
        "-k",
        action="store_true",
        help="Do not verify TLS certificates",
    )

    # Output control
    output_group = parser.add_argument_group("output control")
    output_group.add_argument(
        "--include-headers",
        "-i",
        action="store_true",
        help="Print status line and response headers before the body",
    )
    output_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    output_group.add_argument(
        "--quiet",
        action="store_true",
        help="Only print the body; suppress retry notices",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="extensible-request",
        description="HTTP GET/POST with response decoding and automatic retries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # GET with query parameters (repeat a key for a list)
  extensible-request get https://api.example.com/items -q page=2 -q tag=a -q tag=b

  # Encode lists as tag[]=a&tag[]=b
  extensible-request get https://api.example.com/items -q tag=a -q tag=b --array-format brackets

  # POST a JSON body with no retries
  extensible-request post https://api.example.com/items -d '{"name": "x"}' --json --retries 0

  # Load settings from a YAML file
  extensible-request get https://api.example.com/items --config client.yaml
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="{get,post}")
    subparsers.required = True

    get_parser = subparsers.add_parser("get", help="Send a GET request")
    _add_common_arguments(get_parser)
    query_group = get_parser.add_argument_group("query string")
    query_group.add_argument(
        "--query",
        "-q",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Query parameter (repeat a key to send a list)",
    )
    query_group.add_argument("--sep", default=None, help="Pair separator (default: &)")
    query_group.add_argument("--eq", default=None, help="Key/value separator (default: =)")
    query_group.add_argument(
        "--array-format",
        choices=["repeat", "brackets"],
        default=None,
        help="List encoding (default: repeat)",
    )

    post_parser = subparsers.add_parser("post", help="Send a POST request")
    _add_common_arguments(post_parser)
    body_group = post_parser.add_mutually_exclusive_group()
    body_group.add_argument("--data", "-d", default=None, help="Request body")
    body_group.add_argument("--data-file", type=Path, default=None, help="Read the request body from a file")
    post_parser.add_argument(
        "--json",
        action="store_true",
        help="Send content-type: application/json",
    )

    return parser


def parse_query(pairs: list[str]) -> dict[str, Union[str, list[str]]]:
    """Turn KEY=VALUE strings into a mapping; repeated keys become lists."""
    params: dict[str, Union[str, list[str]]] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Query parameter must be KEY=VALUE: {pair!r}")
        existing = params.get(key)
        if existing is None:
            params[key] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            params[key] = [existing, value]
    return params


def parse_headers(values: list[str]) -> dict[str, str]:
    """Turn 'Name: value' strings into a header mapping."""
    headers: dict[str, str] = {}
    for value in values:
        name, sep, content = value.partition(":")
        if not sep or not name.strip():
            raise ValueError(f"Header must be 'NAME: VALUE': {value!r}")
        headers[name.strip()] = content.strip()
    return headers


def build_config(args: argparse.Namespace) -> ClientConfig:
    """Combine the optional YAML config with command-line overrides."""
    config = ClientConfig.from_yaml_file(args.config) if args.config else ClientConfig()

    # Transport settings
    transport_kwargs: dict[str, Any] = config.transport.model_dump(exclude_unset=True)
    headers = dict(config.transport.headers or {})
    headers.update(parse_headers(args.header))
    if getattr(args, "json", False):
        headers.setdefault("content-type", "application/json")
    if headers:
        transport_kwargs["headers"] = headers
    if args.timeout is not None:
        transport_kwargs["timeout"] = args.timeout
    if args.insecure:
        transport_kwargs["verify_ssl"] = False

    # Retry settings
    retry_kwargs: dict[str, Any] = config.retry.model_dump(exclude_unset=True)
    if args.retries is not None:
        retry_kwargs["retries"] = args.retries
    if args.interval is not None:
        retry_kwargs["interval"] = args.interval

    # Query string settings
    query_kwargs: dict[str, Any] = config.query_string.model_dump(exclude_unset=True)
    for name in ("sep", "eq", "array_format"):
        value = getattr(args, name, None)
        if value is not None:
            query_kwargs[name] = value

    # Log level
    log_level = config.log_level
    if args.verbose:
        log_level = "DEBUG"
    elif args.quiet:
        log_level = "ERROR"

    return ClientConfig(
        transport=TransportOptions(**transport_kwargs),
        retry=RetryPolicy(**retry_kwargs),
        query_string=QueryStringOptions(**query_kwargs),
        log_level=log_level,
        log_file=config.log_file,
    )


def print_result(console: Console, result: DecodedResult, include_headers: bool = False) -> None:
    """Print a decoded result: optional status and headers, then the body."""
    if include_headers:
        console.print(f"[bold]HTTP {result.status_code}[/bold]")
        for name, value in result.headers.items():
            console.print(f"[cyan]{escape(name)}[/cyan]: {escape(value)}", emoji=False, highlight=False)
        console.print()

    if result.is_json:
        console.print_json(data=result.body)
    else:
        console.print(result.body, markup=False, emoji=False, highlight=False, soft_wrap=True)


def run_request(args: argparse.Namespace) -> int:
    """Run a get or post command with given arguments."""
    console = Console()
    err_console = Console(stderr=True)

    try:
        config = build_config(args)
        query = parse_query(getattr(args, "query", []))
        body: Optional[Union[str, bytes]] = getattr(args, "data", None)
        data_file: Optional[Path] = getattr(args, "data_file", None)
        if data_file is not None:
            body = data_file.read_bytes()
    except Exception as e:
        err_console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        return 1

    setup_logging(config.log_level, log_file=str(config.log_file) if config.log_file else None)

    def on_event(event: RequestEvent) -> None:
        if args.quiet:
            return
        if event.type == EventType.REQUEST_RETRYING:
            err_console.print(
                f"[yellow]Attempt {event.attempt} failed:[/yellow] {escape(event.error or '')} "
                f"- retrying in {event.delay_ms:g}ms"
            )

    async def run() -> DecodedResult:
        if args.command == "get":
            return await get(
                args.url,
                query,
                config.transport,
                config.query_string,
                config.retry,
                on_event=on_event,
            )
        return await post(args.url, body, config.transport, config.retry, on_event=on_event)

    try:
        result = asyncio.run(run())
    except RequestError as e:
        err_console.print(f"[red]HTTP {e.status_code}[/red] {escape(e.message)}")
        return 1
    except ExtensibleRequestError as e:
        err_console.print(f"[red]{e.name}:[/red] {escape(str(e))}")
        return 1
    except TRANSPORT_EXCEPTIONS as e:
        err_console.print(f"[red]Connection error:[/red] {escape(repr(e))}")
        return 1

    print_result(console, result, include_headers=args.include_headers)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    return run_request(args)


if __name__ == "__main__":
    sys.exit(main())
