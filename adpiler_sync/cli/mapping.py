"""
Mapping CLI commands.

  adpiler-sync mapping lookup "<card title>"   — show the row a title resolves to
"""

from __future__ import annotations

import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from adpiler_sync.sources.mapping import ClientMappingSheet, MappingNotFoundError

console = Console()
app = typer.Typer(help="Inspect the client mapping sheet.")


@app.command()
def lookup(
    title: str = typer.Argument(..., help="Card title to resolve"),
) -> None:
    """Resolve a card title to its AdPiler client and campaign."""
    sheet = ClientMappingSheet()
    try:
        mapping = sheet.lookup(title)
    except MappingNotFoundError as exc:
        rprint(f"[red]No mapping:[/red] {exc}")
        raise typer.Exit(1)
    finally:
        sheet.close()

    table = Table(title=f"🗂  {title}", show_header=False)
    table.add_column("Field", style="dim")
    table.add_column("Value", style="cyan")
    table.add_row("Client", mapping.client_name)
    table.add_row("Client ID", mapping.client_id)
    table.add_row("Campaign ID", mapping.campaign_id or "—")
    table.add_row("Campaign code", mapping.campaign_code or "—")
    console.print(table)
