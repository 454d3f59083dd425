"""Command line interface for dfind."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

import typer
from rich.console import Console

from dfind.config import AppConfig
from dfind.db.store import Store, collect_keys
from dfind.errors import QueryFailure, SetupFailure, TraversalFailure
from dfind.scan.scanner import Scanner
from dfind.web.app import app as web_app


console = Console()
app = typer.Typer(help="dfind - index file paths and search them")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _open_store(config: AppConfig, *, read_only: bool) -> Store:
    try:
        return Store.open(config, read_only=read_only, base_dir=Path.cwd())
    except SetupFailure as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc


@app.command()
def scan(
    root: Path = typer.Argument(..., help="Directory to scan.", resolve_path=True),
    data_dir: Path = typer.Option(None, "--data-dir", help="Where to store databases"),
    follow_symlinks: bool = typer.Option(
        False, "--follow-symlinks", help="Descend into symlinked directories"
    ),
    one_filesystem: bool = typer.Option(
        False, "--one-filesystem", help="Do not cross filesystem boundaries"
    ),
    keep_going: bool = typer.Option(
        False, "--keep-going", help="Continue past traversal errors instead of halting"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Scan a directory tree into the index."""
    _setup_logging(verbose)
    config = AppConfig(
        data_dir=data_dir,
        verbose=verbose,
        follow_symlinks=follow_symlinks,
        one_filesystem=one_filesystem,
        halt_on_error=not keep_going,
    )
    store = _open_store(config, read_only=False)
    scanner = Scanner(config, store)

    console.print(f"Scanning [bold]{root}[/bold] into [bold]{config.resolve_db_path(Path.cwd())}[/bold]...")
    try:
        stats = scanner.scan_insert(root)
    except TraversalFailure as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    finally:
        store.close()

    for path, message in stats.errors:
        console.print(f"[yellow]Error at {path}: {message}[/yellow]")
    console.print(
        f"Inserted: {stats.inserted}, updated: {stats.updated}, failed: {stats.failed}"
    )


@app.command()
def search(
    pattern: List[str] = typer.Argument(..., help="Text to look for in indexed paths"),
    insensitive: bool = typer.Option(
        False, "--insensitive", "-i", help="Perform search ignoring case"
    ),
    data_dir: Path = typer.Option(None, "--data-dir", help="Where to store databases"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search indexed paths for a substring."""
    _setup_logging(verbose)
    query = " ".join(pattern)
    config = AppConfig(data_dir=data_dir, verbose=verbose)

    if verbose:
        console.print(f"Insensitive: {insensitive}, pattern: {query!r}")

    store = _open_store(config, read_only=True)
    try:
        keys = collect_keys(store.search(query, ignore_case=insensitive))
    except QueryFailure as exc:
        console.print(f"[red]Error searching: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    finally:
        store.close()

    if not keys:
        console.print("[yellow]No matches found.[/yellow]")
        return
    for key in keys:
        console.print(key, markup=False, highlight=False, soft_wrap=True)


@app.command()
def prune(
    data_dir: Path = typer.Option(None, "--data-dir", help="Where to store databases"),
) -> None:
    """Remove entries whose paths no longer exist on disk."""
    config = AppConfig(data_dir=data_dir)
    resolved_db = config.resolve_db_path(Path.cwd())

    if not resolved_db.exists():
        console.print("[yellow]Database not found, nothing to prune.[/yellow]")
        return

    store = _open_store(config, read_only=False)
    try:
        removed = store.prune()
    finally:
        store.close()
    console.print(f"Removed {removed} missing entries.")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    data_dir: Path = typer.Option(None, "--data-dir", help="Where to store databases"),
) -> None:
    """Start the HTTP search API."""
    import uvicorn

    config = AppConfig(data_dir=data_dir)
    resolved_db = config.resolve_db_path(Path.cwd())
    if not resolved_db.exists():
        console.print("[yellow]Warning: database not found, searches might fail.[/yellow]")

    web_app.state.config = config
    console.print(f"Starting HTTP API on http://{host}:{port} (database: {resolved_db})")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
