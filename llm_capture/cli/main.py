"""llm-capture CLI - inspect captured sessions and run the viewer."""

import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import click

from .. import __version__
from ..core.config import (
    CAPTURE_TOGGLE_ENV,
    capture_enabled,
    default_log_dir,
    default_viewer_port,
)
from ..core.errors import LLMCaptureError
from ..core.store import LogStore

dir_option = click.option(
    "--dir", "-d", "log_dir",
    type=click.Path(file_okay=False),
    help="Capture log root (default: $OPENCODE_LLM_CAPTURE_DIR or ~/.config/opencode/...)"
)


def _store(log_dir: Optional[str]) -> LogStore:
    return LogStore(Path(log_dir) if log_dir else default_log_dir())


def _fail(message: str) -> None:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


def _format_mtime(mtime_ms: int) -> str:
    return datetime.fromtimestamp(mtime_ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


@click.group()
@click.version_option(version=__version__, prog_name="llm-capture")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """llm-capture - Per-session logs of outbound LLM HTTP calls."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@cli.command()
@dir_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def sessions(log_dir: Optional[str], as_json: bool):
    """List captured sessions, most recent first.

    Examples:
        llm-capture sessions
        llm-capture sessions --json
    """
    store = _store(log_dir)
    summaries = asyncio.run(store.list_sessions())

    if as_json:
        click.echo(json.dumps([s.model_dump() for s in summaries], indent=2))
        return

    if not summaries:
        click.echo(f"No sessions in {store.base_dir}")
        return

    click.echo(click.style(f"Sessions in {store.base_dir}", bold=True))
    click.echo()
    for s in summaries:
        click.echo(f"  {s.name:<40} {s.count:>5} calls   {_format_mtime(s.mtime)}")


@cli.command()
@click.argument("session_id")
@dir_option
@click.option("--json", "as_json", is_flag=True, help="Output full records as JSON")
def show(session_id: str, log_dir: Optional[str], as_json: bool):
    """Summarize every captured call of a session.

    Examples:
        llm-capture show ses_42
        llm-capture show 2024-01-01 --json
    """
    store = _store(log_dir)
    try:
        files = asyncio.run(store.read_session(session_id))
    except LLMCaptureError as e:
        _fail(str(e))

    if as_json:
        click.echo(json.dumps([f.model_dump() for f in files], indent=2, ensure_ascii=False))
        return

    if not files:
        click.echo("No capture records in session.")
        return

    click.echo(click.style(f"Session {session_id}: {len(files)} calls", bold=True))
    click.echo()
    for f in files:
        meta, response = f.data["metadata"], f.data["response"]
        status = response.get("status", "?")
        color = "green" if isinstance(status, int) and status < 400 else "red"
        click.echo(
            f"  {meta.get('id', '????')} "
            + click.style(f"{status}", fg=color)
            + f" {meta.get('method', '')} {meta.get('url', '')}"
            + click.style(f"  {meta.get('durationMs', 0)}ms {meta.get('responseType', '')}", dim=True)
        )


@cli.command()
@click.argument("session_id")
@dir_option
def latest(session_id: str, log_dir: Optional[str]):
    """Print a session's latest-call pointer.

    Example:
        llm-capture latest ses_42
    """
    store = _store(log_dir)
    try:
        pointer = asyncio.run(store.read_latest(session_id))
    except LLMCaptureError as e:
        _fail(str(e))
    except (OSError, ValueError) as e:
        _fail(f"Could not read latest pointer: {e}")

    if pointer is None:
        _fail(f"No latest pointer for session {session_id}")
    click.echo(json.dumps(pointer, indent=2))


@cli.command()
@dir_option
def status(log_dir: Optional[str]):
    """Show whether capture is enabled and when the plugin last loaded."""
    store = _store(log_dir)
    enabled = capture_enabled()

    click.echo(click.style("llm-capture status", fg="cyan", bold=True))
    click.echo()
    state = click.style("enabled", fg="green") if enabled else click.style("disabled", fg="yellow")
    click.echo(f"  Capture: {state} (${CAPTURE_TOGGLE_ENV})")
    click.echo(f"  Log directory: {store.base_dir}")

    try:
        heartbeat = asyncio.run(store.read_heartbeat())
    except (OSError, ValueError) as e:
        heartbeat = None
        click.echo(click.style(f"  Heartbeat unreadable: {e}", fg="red"))

    if heartbeat:
        click.echo(f"  Plugin last loaded: {heartbeat.get('timestamp')} from {heartbeat.get('directory')}")
    else:
        click.echo("  Plugin last loaded: never")


@cli.command()
@click.option("--port", "-p", type=int, default=None, help="Port to run the viewer on (default: 3000)")
@click.option("--host", "-h", default="127.0.0.1", help="Host to bind to")
@dir_option
def serve(port: Optional[int], host: str, log_dir: Optional[str]):
    """Launch the browser viewer for captured sessions.

    Examples:
        llm-capture serve
        llm-capture serve --port 8080 --dir ./llm-dump
    """
    store = _store(log_dir)
    port = port or default_viewer_port()

    click.echo(click.style("llm-capture viewer", fg="cyan", bold=True))
    click.echo()
    click.echo(f"  Log directory: {store.base_dir}")
    click.echo("  Viewer URL: " + click.style(f"http://{host}:{port}", fg="green", bold=True))
    click.echo()
    click.echo("Press Ctrl+C to stop the server")
    click.echo()

    from ..viewer import run_viewer
    run_viewer(host=host, port=port, log_dir=store.base_dir)


def main():
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
