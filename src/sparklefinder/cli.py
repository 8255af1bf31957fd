"""Command line interface for SparkleFinder."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from sparklefinder.config import AppConfig
from sparklefinder.errors import SandboxError
from sparklefinder.models import SearchOptions, SearchResult
from sparklefinder.service import SparkleService

console = Console()
app = typer.Typer(help="SparkleFinder - sandboxed file index and search")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _build_config(root: Optional[Path], **overrides) -> AppConfig:
    config = AppConfig(**overrides)
    if root is not None:
        config.sandbox_root = root
    return config


def _print_results(results: List[SearchResult], *, detail: str) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("File")
    table.add_column(detail)

    for result in results:
        extra = result.summary if detail == "Summary" else result.matched_content
        table.add_row(f"{result.relevance:.2f}", str(result.path), (extra or "")[:120])

    console.print(table)


@app.command()
def find(
    query: str = typer.Argument(..., help="Natural-language query"),
    root: Path = typer.Option(None, "--root", help="Sandbox folder (default ~/Sparkle)"),
    limit: int = typer.Option(10, help="Number of results to display"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Rank the files in the sandbox folder against a query."""
    _setup_logging(verbose)
    service = SparkleService(_build_config(root))

    async def run() -> List[SearchResult]:
        await service.start(watch=False)
        return await service.find_relevant(query, limit)

    results = asyncio.run(run())
    if service.index.degraded:
        console.print(f"[yellow]Index unavailable: {service.index.scan_error}[/yellow]")
    if not results:
        console.print(f'[yellow]No files found matching "{query}".[/yellow]')
        return
    _print_results(results, detail="Summary")


@app.command()
def search(
    query: str = typer.Argument(..., help="Keywords or file-type hints"),
    location: List[Path] = typer.Option(None, "--location", "-l", help="Folder to search (repeatable)"),
    file_type: List[str] = typer.Option(None, "--type", "-t", help="Extension filter, e.g. pdf (repeatable)"),
    root: Path = typer.Option(None, "--root", help="Sandbox folder (default ~/Sparkle)"),
    limit: int = typer.Option(50, help="Maximum number of results"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Search file names, then file contents, without using the index."""
    _setup_logging(verbose)
    service = SparkleService(_build_config(root))
    options = SearchOptions(
        query=query,
        locations=location or [service.root],
        file_types=file_type or [],
        limit=limit,
    )

    try:
        results = asyncio.run(service.search(options))
    except SandboxError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    if not results:
        console.print(f'[yellow]No files found matching "{query}".[/yellow]')
        return
    _print_results(results, detail="Match")


@app.command()
def check(
    path: Path = typer.Argument(..., help="Path to validate"),
    root: Path = typer.Option(None, "--root", help="Sandbox folder (default ~/Sparkle)"),
    max_size: int = typer.Option(AppConfig().max_file_size, help="Size ceiling in bytes"),
    allow_symlinks: bool = typer.Option(False, "--allow-symlinks", help="Permit symbolic links"),
) -> None:
    """Validate a path against the sandbox policy."""
    service = SparkleService(
        _build_config(root, max_file_size=max_size, allow_symlinks=allow_symlinks)
    )
    try:
        resolved = service.guard.validate(path)
    except SandboxError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    console.print(str(resolved))


@app.command()
def watch(
    root: Path = typer.Option(None, "--root", help="Sandbox folder (default ~/Sparkle)"),
    rename: bool = typer.Option(True, "--rename/--no-rename", help="Rename generic file names"),
    depth: int = typer.Option(AppConfig().watch_depth, help="Directory levels to watch"),
    downloads: bool = typer.Option(False, "--downloads", help="Also track new downloads"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Index the sandbox folder and keep the index live until interrupted."""
    _setup_logging(verbose)
    service = SparkleService(
        _build_config(root, auto_rename=rename, watch_depth=depth, track_downloads=downloads)
    )

    async def run() -> None:
        await service.start(watch=True)
        console.print(
            f"Watching [bold]{service.root}[/bold] ({len(service.index)} files indexed). "
            "Press Ctrl+C to stop."
        )
        try:
            await asyncio.Event().wait()
        finally:
            await service.stop()

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        console.print("Stopped.")
