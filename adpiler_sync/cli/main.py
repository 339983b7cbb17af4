"""
Main CLI entry point.
Usage: adpiler-sync [COMMAND]
"""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from adpiler_sync.cli.mapping import app as mapping_app
from adpiler_sync.cli.publish import app as publish_app

app = typer.Typer(
    name="adpiler-sync",
    help="📤 Publish Trello creative cards to AdPiler",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
)

console = Console()

app.add_typer(publish_app, name="publish", help="🚀 Classify and publish a card")
app.add_typer(mapping_app, name="mapping", help="🗂  Client → campaign mapping sheet")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    from config.settings import settings

    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


if __name__ == "__main__":
    app()
