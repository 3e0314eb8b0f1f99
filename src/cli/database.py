"""CLI command for checking the book database export."""

import logging
from typing import Annotated

import typer
from rich.console import Console

from config.settings import get_settings
from src.errors import ReferenceUnavailableError
from src.references.database import BookDatabase

console = Console()
app = typer.Typer()


@app.command()
def database(
    min_books: Annotated[
        int,
        typer.Option("--min-books", help="Fail when the database holds fewer titles"),
    ] = 0,
    title: Annotated[
        list[str] | None,
        typer.Option("--title", "-t", help="Title to look up (repeatable)"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
):
    """Check database connectivity and look up titles."""
    if verbose:
        logging.basicConfig(level=logging.INFO)
    else:
        logging.basicConfig(level=logging.WARNING)

    settings = get_settings()
    db = BookDatabase(settings.database_path)

    try:
        info = db.info()
    except ReferenceUnavailableError as e:
        console.print(f"[bold red]{e}[/bold red]")
        raise typer.Exit(1)

    console.print(f"[bold]Database:[/bold] {info['path']}")
    console.print(f"Titles: {info['book_count']}")

    if info["book_count"] < min_books:
        console.print(f"[bold red]Expected at least {min_books} titles.[/bold red]")
        raise typer.Exit(1)

    if title:
        found, missing = db.find_matching(title)
        for extracted, matched in found:
            console.print(f"[green]FOUND[/green] {extracted} -> {matched}")
        for name in missing:
            console.print(f"[red]MISSING[/red] {name}")
        if missing:
            raise typer.Exit(1)
