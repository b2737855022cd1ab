"""Command line interface for the metric cache."""

from __future__ import annotations
import asyncio
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated, TextIO
import typer
from rich.console import Console
from metric_cache.config import get_settings
from metric_cache.errors import (
    LineParseError,
    MetricCacheError,
    PurgeFailedError,
)
from metric_cache.ingestion import CacheListener
from metric_cache.logging_config import configure_logging
from metric_cache.models import RawRecord
from metric_cache.parser import parse_line
from metric_cache.service import run_service
from metric_cache.store import MetricStore


app = typer.Typer(help="Latest-value cache for plaintext metric streams.")
err_console = Console(stderr=True)


@app.command()
def serve(
    host: Annotated[
        str | None, typer.Option("--host", help="Override the HTTP bind host.")
    ] = None,
    port: Annotated[
        int | None, typer.Option("--port", help="Override the HTTP port.")
    ] = None,
    syslog_port: Annotated[
        int | None,
        typer.Option("--syslog-port", help="Override the syslog UDP port."),
    ] = None,
) -> None:
    """Receive syslog metric lines and serve cache dumps over HTTP."""
    try:
        settings = get_settings(refresh=True)
    except ValueError as exc:
        err_console.print(f"[red]Invalid configuration:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    if host is not None:
        settings.set("HOST", host)
    if port is not None:
        settings.set("PORT", port)
    if syslog_port is not None:
        settings.set("SYSLOG_PORT", syslog_port)

    configure_logging(settings.log_level, settings.log_format)
    try:
        asyncio.run(run_service(settings))
    except PurgeFailedError as exc:
        err_console.print(f"[red]Fatal:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    except OSError as exc:
        err_console.print(f"[red]Could not start:[/red] {exc}")
        raise typer.Exit(code=1) from exc


def _iter_records(stream: TextIO, source: str) -> Iterator[RawRecord]:
    for line in stream:
        yield RawRecord(
            message=line.rstrip("\n"),
            reporter=source,
            received_at=datetime.now(tz=UTC),
        )


@app.command()
def replay(
    path: Annotated[str, typer.Argument(help="File of metric lines, '-' for stdin.")],
    source: Annotated[
        str, typer.Option("--source", help="Reporter identity for every line.")
    ] = "",
    plain: Annotated[
        bool, typer.Option("--plain", help="Emit the compact, unordered dump.")
    ] = False,
) -> None:
    """Feed metric lines through a fresh cache and print its dump."""
    configure_logging("WARNING")
    listener = CacheListener(MetricStore())
    try:
        if path == "-":
            stdin = typer.get_text_stream("stdin", encoding="utf-8", errors="replace")
            listener.listen(_iter_records(stdin, source))
        else:
            with Path(path).open(encoding="utf-8", errors="replace") as handle:
                listener.listen(_iter_records(handle, source))
        store = listener.store
        typer.echo(store.dump_plain() if plain else store.dump_pretty())
    except OSError as exc:
        err_console.print(f"[red]Could not read {path}:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    except MetricCacheError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    stats = store.stats()
    err_console.print(
        f"received={stats.received} errors={stats.errors} stored={stats.stored}"
    )


@app.command()
def parse(
    line: Annotated[str, typer.Argument(help="A '<metric> <value> <ts>' line.")],
) -> None:
    """Parse a single metric line and print the result."""
    try:
        parsed = parse_line(RawRecord(message=line))
    except LineParseError as exc:
        err_console.print(f"[red]{exc.kind.value}:[/red] {exc.reason}")
        raise typer.Exit(code=1) from exc
    typer.echo(f"{parsed.metric} {parsed.value!r} {parsed.timestamp}")


def run() -> None:
    """Entry point used by console scripts."""
    app()


__all__ = ["app", "run"]
