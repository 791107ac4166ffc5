"""CLI implementation for rangeserve."""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from werkzeug.serving import run_simple

from .config import DEFAULT_CONFIG
from .app import create_app
from .core.mime import describe_file
from .core.model import RangeRequest
from .core.responder import RangeResponder
from .core.util import response_asdict
from .log import setup_logging
from .probe import probe as run_probe, probe_async

app = typer.Typer(add_completion=False, help="Serve files with HTTP byte-range support.")


@app.command()
def serve(
    root: Path = typer.Argument(..., exists=True, file_okay=False, dir_okay=True, help="Directory of files to serve"),
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(8000, "--port", min=0, max=65535, help="Port to bind"),
    chunk_size: Optional[int] = typer.Option(None, "--chunk-size", min=1, help="Bytes per read while streaming"),
    log_level: str = typer.Option("INFO", "--log-level", help="Log level"),
):
    """Serve every file in ROOT at /<name>, with /<name>/info metadata."""
    setup_logging(log_level)
    config = DEFAULT_CONFIG.with_overrides(chunk_size=chunk_size)
    run_simple(host, port, create_app(root, config), threaded=True)


@app.command()
def inspect(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="File to describe"),
    range_: Optional[str] = typer.Option(None, "--range", "-r", help="Range header value, e.g. 'bytes=0-99'"),
    if_none_match: Optional[str] = typer.Option(None, "--if-none-match", help="If-None-Match header value"),
    head: bool = typer.Option(False, "--head", help="Decide for a HEAD request"),
    fields: Optional[str] = typer.Option(None, "--fields", help="Comma-separated subset of keys to emit"),
):
    """Print the decision, status and headers a request for FILE would get."""
    request = RangeRequest(method="HEAD" if head else "GET", range=range_, if_none_match=if_none_match)
    response = RangeResponder().respond(describe_file(file), request)
    sel_fields = set(fields.split(",")) if fields else None
    typer.echo(json.dumps(response_asdict(response, fields=sel_fields), indent=2))


@app.command()
def probe(
    url: str = typer.Argument(..., help="URL of a file on a range-capable server"),
    sync: bool = typer.Option(False, "--sync", help="Force synchronous I/O"),
):
    """Check a server's range, suffix, 416 and 304 behaviour for URL."""
    try:
        report = run_probe(url) if sync else asyncio.run(probe_async(url))
    except (IOError, OSError) as e:
        typer.echo(json.dumps({"url": url, "success": False, "error": str(e)}, indent=2))
        raise typer.Exit(code=1)

    typer.echo(json.dumps(report.asdict(), indent=2))
    if not report.success:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
