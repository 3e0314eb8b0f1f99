"""BookGenie QA CLI entry point."""

import typer

from src.cli.database import database
from src.cli.extract import extract
from src.cli.run import run

app = typer.Typer(
    name="bookgenie-qa",
    help="BookGenie end-to-end QA harness - drive the chat UI and validate book recommendations.",
)

app.command(name="run")(run)
app.command(name="extract")(extract)
app.command(name="database")(database)


if __name__ == "__main__":
    app()
