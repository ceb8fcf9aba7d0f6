"""Command line interface for fileindexer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from fileindexer.config import AppConfig
from fileindexer.errors import ConfigurationError, SearchQueryError
from fileindexer.index.fingerprints import FingerprintStore
from fileindexer.index.indexer import Indexer
from fileindexer.index.storage import SQLiteSearchIndex
from fileindexer.ingestion.extractors import default_registry
from fileindexer.utils.files import add_mime_mappings, parse_mime_mapping


console = Console()
app = typer.Typer(help="fileindexer - incremental full-text indexing of local files")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _apply_mime_mappings(values: Optional[List[str]]) -> None:
    mappings = {}
    for value in values or []:
        try:
            ext, mime_type = parse_mime_mapping(value)
        except ConfigurationError as exc:
            raise typer.BadParameter(exc.message, param_hint="--mime") from exc
        mappings[ext] = mime_type
    add_mime_mappings(mappings)


@app.command()
def index(
    inputs: List[Path] = typer.Argument(..., help="Files or directories to index."),
    index_location: Path = typer.Option(
        AppConfig().index_path, "--index", help="Location of the search index database"
    ),
    hash_location: Path = typer.Option(
        AppConfig().hash_path, "--hashes", help="Directory where indexed file hashes are stored"
    ),
    max_size: int = typer.Option(
        AppConfig().max_file_size,
        "--max-size",
        min=0,
        help="Largest file size to index, in bytes",
    ),
    mime: Optional[List[str]] = typer.Option(
        None, "--mime", help="Custom mime type mapping, e.g. .org=text/x-org"
    ),
    pdf_density: int = typer.Option(
        AppConfig().pdf_density, help="Density (DPI) used when rendering PDF pages for OCR"
    ),
    tess_data_prefix: Optional[Path] = typer.Option(
        AppConfig().tess_data_prefix, help="Location of the tesseract data"
    ),
    lang: str = typer.Option(AppConfig().ocr_language, help="OCR language"),
    workers: int = typer.Option(AppConfig().workers, min=1, help="Files processed in parallel"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Index files and directories, skipping content indexed before."""
    _setup_logging(verbose)
    _apply_mime_mappings(mime)
    config = AppConfig(
        index_path=index_location,
        hash_path=hash_location,
        max_file_size=max_size,
        pdf_density=pdf_density,
        tess_data_prefix=tess_data_prefix,
        ocr_language=lang,
        workers=workers,
    )
    resolved_index = config.resolve_index_path(Path.cwd())
    resolved_hashes = config.resolve_hash_path(Path.cwd())

    console.print(f"Indexing into [bold]{resolved_index}[/bold]...")
    with SQLiteSearchIndex(resolved_index) as search_index:
        indexer = Indexer(
            default_registry(config),
            search_index,
            FingerprintStore(resolved_hashes),
            max_file_size=config.max_file_size,
        )
        stats = indexer.index(
            inputs, workers=config.workers, exclude=[resolved_index, resolved_hashes]
        )

    console.print(
        f"Indexed: {stats.indexed}, unchanged: {stats.unchanged}, "
        f"skipped: {stats.skipped}, failed: {stats.failed}"
    )
    if stats.failed:
        raise typer.Exit(code=1)


@app.command()
def query(
    terms: List[str] = typer.Argument(..., help="Query terms"),
    index_location: Path = typer.Option(
        AppConfig().index_path, "--index", help="Location of the search index database"
    ),
    limit: int = typer.Option(AppConfig().limit, min=1, help="Number of results to display"),
    offset: int = typer.Option(AppConfig().offset, "--from", min=0, help="Results to skip"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Run a full-text query against the index."""
    _setup_logging(verbose)
    config = AppConfig(index_path=index_location, limit=limit, offset=offset)
    resolved_index = config.resolve_index_path(Path.cwd())

    if not resolved_index.exists():
        raise typer.BadParameter(f"Index not found: {resolved_index}")

    with SQLiteSearchIndex(
        resolved_index, limit=config.limit, offset=config.offset
    ) as search_index:
        try:
            results = search_index.query(terms)
        except SearchQueryError as exc:
            console.print(f"[red]Error: {exc.message}[/red]")
            raise typer.Exit(code=1) from exc

    if not results:
        console.print("[yellow]No matches found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Document")
    table.add_column("Type")
    table.add_column("Snippet")

    for result in results:
        snippet = Text.from_ansi(result.snippet.replace("\n", " "))
        table.add_row(f"{result.score:.4f}", str(result.path), result.mime_type, snippet)

    console.print(table)
    console.print(f"{len(results)} matches")
