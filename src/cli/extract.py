"""CLI command for extracting books from a saved response fragment."""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from config.settings import get_settings
from src.extraction.book_extractor import extract_books, extract_question
from src.references.spreadsheet import reference_path, write_records

console = Console()
app = typer.Typer()


@app.command()
def extract(
    html_file: Annotated[
        Path,
        typer.Argument(help="File holding the response container's inner HTML", exists=True, dir_okay=False),
    ],
    save: Annotated[
        bool,
        typer.Option("--save", help="Save the extracted books as a reference spreadsheet"),
    ] = False,
    query: Annotated[
        str | None,
        typer.Option("--query", "-q", help="Query used to name the reference file"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
):
    """Parse a saved BookGenie response and print the recommended books."""
    if verbose:
        logging.basicConfig(level=logging.INFO)
    else:
        logging.basicConfig(level=logging.WARNING)

    html = html_file.read_text(encoding="utf-8")
    question = extract_question(html)
    books = extract_books(html)

    if not books:
        console.print("[yellow]No books found in the response.[/yellow]")
        raise typer.Exit(1)

    table = Table(title=f"Books for: {question or html_file.name}")
    table.add_column("#", justify="right")
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Score", justify="right")
    table.add_column("Reasons", justify="right")
    table.add_column("Gap")
    for i, book in enumerate(books, 1):
        table.add_row(
            str(i),
            book.title,
            book.author,
            f"{book.relevance_score}%",
            str(len(book.reasons)),
            book.gap,
        )
    console.print(table)

    if save:
        settings = get_settings()
        path = write_records(books, reference_path(query or question or html_file.stem, settings.results_dir))
        console.print(f"Saved {len(books)} books to [bold]{path}[/bold]")
