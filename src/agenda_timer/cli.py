"""Command-line interface for the meeting agenda timer."""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Optional

import typer

from .config import MeetingSettings
from .csv_codec import TEMPLATE_FILE_PREFIX, dump_template, encode, export_filename, parse_data
from .paths import get_export_dir, get_log_path
from .server_runner import run_dashboard

app = typer.Typer(help="Meeting agenda timer with planned vs actual tracking.")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


@app.callback(no_args_is_help=True)
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs."),
    log_file: bool = typer.Option(
        False, "--log-file", help="Also write logs to the application log file."
    ),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
    )
    if log_file:
        handler = logging.FileHandler(get_log_path(), encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(handler)


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the API."),
    port: int = typer.Option(
        8765, "--port", min=1, max=65535, help="TCP port for the API."
    ),
    ignore_seconds: float = typer.Option(
        5.0,
        "--ignore-threshold",
        min=0.0,
        help="Activities stopped before this many seconds are discarded.",
    ),
    open_browser: bool = typer.Option(
        True,
        "--open-browser/--no-open-browser",
        help="Automatically open the API docs in your default browser.",
    ),
    browser_path: str = typer.Option(
        "/docs", "--browser-path", help="Page of the API to open in the browser."
    ),
) -> None:
    """Serve the meeting timer on a local port."""
    run_dashboard(
        host=host,
        port=port,
        settings=MeetingSettings.from_values(ignore_seconds),
        open_browser=open_browser,
        browser_path=browser_path,
    )


@app.command()
def summary(
    csv_path: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="Meeting data CSV file."
    ),
) -> None:
    """Print planned vs actual time for an exported meeting."""
    from .reporting import SummaryPrinter

    SummaryPrinter(csv_path).print_summary()


@app.command("to-template")
def to_template(
    csv_path: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="Meeting data CSV file."
    ),
    out: Optional[Path] = typer.Option(
        None,
        "--out",
        "-o",
        help="Destination file. Defaults to the export folder.",
    ),
) -> None:
    """Turn a meeting data file into a reusable agenda template."""
    result = parse_data(csv_path.read_text(encoding="utf-8-sig"))
    if not result.activities:
        typer.echo(result.message, err=True)
        raise typer.Exit(code=1)
    target = out or get_export_dir() / export_filename(TEMPLATE_FILE_PREFIX, date.today())
    target.write_bytes(encode(dump_template(result.activities)))
    typer.echo(f"Wrote {result.imported} activities to {target}")
