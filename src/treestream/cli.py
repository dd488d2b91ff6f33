"""CLI commands for replaying patch streams into trees."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

import typer

from .config import DEFAULT_CONFIG_NAME, StreamConfig, load_config
from .errors import ConfigError, TreePayloadError
from .fixtures import STREAMS, load_stream
from .session import StreamSummary, TreeStream
from .toolcalls import parse_tree_payload
from .tree import tree_stats

APP_HELP = "Replay newline-delimited JSON patch streams into UI trees."

app = typer.Typer(help=APP_HELP)


def _iter_chunks(text: str, chunk_size: int) -> Iterator[str]:
    """Yield ``text`` in slices of ``chunk_size`` characters (0 means whole)."""
    if chunk_size <= 0:
        yield text
        return
    for start in range(0, len(text), chunk_size):
        yield text[start : start + chunk_size]


def _resolve_config(config: Optional[Path], lazy: bool) -> StreamConfig:
    """Load configuration, turning errors into a clean CLI exit."""
    path = config if config is not None else Path(DEFAULT_CONFIG_NAME)
    try:
        settings = load_config(path)
    except ConfigError as error:
        typer.echo(f"Invalid configuration: {error}")
        raise typer.Exit(code=1) from error
    if lazy:
        settings.eager_trailing = False
    return settings


def _replay_text(text: str, settings: StreamConfig, chunk_size: int) -> StreamSummary:
    """Grow a single message chunk by chunk, as a streaming transport would."""
    session = TreeStream(settings)
    received = ""
    for chunk in _iter_chunks(text, chunk_size):
        received += chunk
        session.update("replay", received)
    return session.finish()


def _echo_summary(summary: StreamSummary, *, show_tree: bool) -> None:
    payload: Dict[str, Any] = summary.to_dict()
    if not show_tree:
        payload.pop("tree", None)
    typer.echo(json.dumps(payload, indent=2, sort_keys=True))


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def replay(
    patch_file: Path = typer.Argument(..., help="File holding newline-delimited JSON patches."),
    chunk_size: int = typer.Option(
        0,
        "--chunk-size",
        "-n",
        help="Deliver the file in chunks of this many characters (0 sends it at once).",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a treestream YAML configuration file.",
    ),
    lazy: bool = typer.Option(
        False,
        "--lazy",
        help="Only decode the trailing fragment at end of stream.",
    ),
    show_tree: bool = typer.Option(True, "--tree/--no-tree", help="Include the final tree in the output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Stream a patch file through a session and print the final tree."""
    _configure_logging(verbose)
    if not patch_file.exists():
        raise typer.BadParameter(f"Patch file not found: {patch_file}")
    text = patch_file.read_text(encoding="utf-8")
    summary = _replay_text(text, _resolve_config(config, lazy), chunk_size)
    _echo_summary(summary, show_tree=show_tree)
    if summary.parse_error:
        raise typer.Exit(code=2)


@app.command()
def demo(
    name: str = typer.Argument("dashboard", help=f"Bundled stream: {', '.join(sorted(STREAMS))}."),
    chunk_size: int = typer.Option(7, "--chunk-size", "-n", help="Characters per simulated delta."),
    show_tree: bool = typer.Option(False, "--tree/--no-tree", help="Include the final tree in the output."),
) -> None:
    """Replay one of the bundled mock streams."""
    try:
        text = load_stream(name)
    except KeyError as error:
        raise typer.BadParameter(str(error.args[0])) from error
    summary = _replay_text(text, StreamConfig(), chunk_size)
    _echo_summary(summary, show_tree=show_tree)


@app.command()
def stats(
    tree_file: Path = typer.Argument(..., help="JSON file holding {\"root\": ..., \"elements\": ...}."),
) -> None:
    """Report reachability and dangling child references for a saved tree."""
    if not tree_file.exists():
        raise typer.BadParameter(f"Tree file not found: {tree_file}")
    try:
        data = json.loads(tree_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as error:
        typer.echo(f"Failed to parse tree file: {error}")
        raise typer.Exit(code=1) from error
    try:
        tree = parse_tree_payload(data)
    except TreePayloadError as error:
        typer.echo(str(error))
        raise typer.Exit(code=1) from error
    typer.echo(json.dumps(tree_stats(tree).to_dict(), indent=2, sort_keys=True))


if __name__ == "__main__":
    app()
