"""CLI command for running a full BookGenie scenario."""

import logging
from typing import Annotated

import typer
from playwright.sync_api import Error as PlaywrightError
from rich.console import Console
from rich.table import Table

from config.settings import get_settings
from src.errors import HarnessError
from src.models.enums import ValidationStatus
from src.scenario.runner import ScenarioOptions, run_scenario

console = Console()
app = typer.Typer()


@app.command()
def run(
    query: Annotated[
        str,
        typer.Argument(help="Query to submit to BookGenie"),
    ],
    mode: Annotated[
        str | None,
        typer.Option("--mode", "-m", help="Chat mode to select (defaults to BOOKGENIE_MODE)"),
    ] = None,
    save_reference: Annotated[
        bool,
        typer.Option("--save-reference", help="Save extracted books as the reference spreadsheet"),
    ] = False,
    skip_spreadsheet: Annotated[
        bool,
        typer.Option("--skip-spreadsheet", help="Skip the reference spreadsheet comparison"),
    ] = False,
    skip_database: Annotated[
        bool,
        typer.Option("--skip-database", help="Skip the book database check"),
    ] = False,
    skip_citations: Annotated[
        bool,
        typer.Option("--skip-citations", help="Skip citation resolution and validation"),
    ] = False,
    cards: Annotated[
        bool,
        typer.Option("--cards", help="Check the recommendation-panel cards against the chat response"),
    ] = False,
    skip_ai: Annotated[
        bool,
        typer.Option("--skip-ai", help="Disable the AI relevance judge and semantic fallback"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging"),
    ] = False,
):
    """Run a query end to end and validate the recommended books."""
    if verbose:
        logging.basicConfig(level=logging.INFO)
    else:
        logging.basicConfig(level=logging.WARNING)

    settings = get_settings()
    options = ScenarioOptions(
        mode=mode,
        save_reference=save_reference,
        check_spreadsheet=not skip_spreadsheet,
        check_database=not skip_database,
        check_citations=not skip_citations,
        check_cards=cards,
        check_relevance=not skip_ai,
        use_ai_validator=not skip_ai,
    )

    console.print(f"[bold]BookGenie scenario[/bold]: {query}")
    try:
        with console.status("[bold green]Waiting for BookGenie..."):
            result = run_scenario(query, options=options, settings=settings)
    except HarnessError as e:
        console.print(f"[bold red]Scenario failed:[/bold red] {e}")
        raise typer.Exit(1)
    except PlaywrightError as e:
        console.print(f"[bold red]Browser error:[/bold red] {e}")
        raise typer.Exit(1)

    table = Table(title="Validation Summary")
    table.add_column("Check", style="bold")
    table.add_column("Result", justify="right")
    table.add_column("Status")
    table.add_row("Books extracted", str(len(result.books)), "")
    if result.saved_reference is not None:
        table.add_row("Reference saved", str(result.saved_reference), "")
    if result.spreadsheet is not None:
        aggregate = result.spreadsheet.aggregate
        table.add_row("Spreadsheet", aggregate.summary(), _status(result.spreadsheet.all_passed))
    if result.database is not None:
        aggregate = result.database.aggregate
        table.add_row("Database", aggregate.summary(), _status(aggregate.status is ValidationStatus.PASS))
    if result.citations is not None:
        aggregate = result.citations.aggregate
        table.add_row("Citations", aggregate.summary(), _status(aggregate.status is ValidationStatus.PASS))
        table.add_row("Citations resolved", str(len(result.citation_records)), "")
    if result.cards is not None:
        table.add_row("Cards", result.cards.aggregate.summary(), _status(result.cards.all_passed))
    if result.relevance is not None:
        label = "fallback" if result.relevance.is_fallback else f"{result.relevance.overall_score}%"
        table.add_row("AI relevance", label, _status(result.relevance.passed))
    console.print(table)

    if result.soft_failures:
        console.print(f"[yellow]Soft checks below threshold: {', '.join(result.soft_failures)}[/yellow]")


def _status(passed: bool) -> str:
    return "[green]PASS[/green]" if passed else "[red]FAIL[/red]"
