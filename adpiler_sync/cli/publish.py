"""
Publishing CLI commands.

  adpiler-sync publish plan <card-id>                — classify + pick a mode, no upload
  adpiler-sync publish run  <card-id> [--mode …]     — publish the card to AdPiler
"""

from __future__ import annotations

from typing import Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from adpiler_sync.assets.models import ClassifiedAssets
from adpiler_sync.pipeline.config import ConfigError, PublishConfig
from adpiler_sync.pipeline.orchestrator import Orchestrator, PublishJobError, PublishPlan
from adpiler_sync.sources.mapping import ClientMappingSheet
from adpiler_sync.sources.trello import TrelloClient, TrelloError

console = Console()
app = typer.Typer(help="Publish Trello cards to AdPiler.")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_config(mode: Optional[str]) -> PublishConfig:
    from config.settings import settings

    try:
        return PublishConfig.from_settings(settings, forced_mode=mode)
    except ConfigError as exc:
        rprint(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(1)


def _assets_table(assets: ClassifiedAssets) -> Table:
    table = Table(title="📎 Classified attachments", show_lines=False)
    table.add_column("View", style="cyan", width=18)
    table.add_column("File", width=44)
    table.add_column("Size", style="dim", width=11)
    table.add_column("Rank", justify="right", width=5)

    for cand in assets.square_assets:
        table.add_row("square", cand.filename, cand.dimensions, str(cand.rank))
    if assets.display_asset:
        cand = assets.display_asset
        table.add_row("display", cand.filename, cand.dimensions, "")
    for cand in assets.non_display_images:
        table.add_row("image", cand.filename, cand.dimensions, "")
    if assets.first_video:
        table.add_row("video", assets.first_video.filename, "", "")
    for name in assets.skipped:
        table.add_row("[yellow]skipped[/yellow]", name, "", "")
    return table


def _print_plan(plan: PublishPlan) -> None:
    console.print(_assets_table(plan.assets))
    rprint(
        f"\n[bold]Mode:[/bold] [cyan]{plan.mode.value}[/cyan]   "
        f"[bold]Paid:[/bold] {'yes' if plan.paid else 'no'}"
    )


# ---------------------------------------------------------------------------
# plan
# ---------------------------------------------------------------------------


@app.command()
def plan(
    card_id: str = typer.Argument(..., help="Trello card ID"),
    mode: Optional[str] = typer.Option(
        None, "--mode", "-m", help="Force a mode: display | post | post-carousel"
    ),
) -> None:
    """Show how a card would be published, without uploading anything."""
    config = _load_config(mode)
    with TrelloClient() as trello:
        try:
            card = trello.get_card(card_id)
        except TrelloError as exc:
            rprint(f"[red]Trello error:[/red] {exc}")
            raise typer.Exit(1)

        orchestrator = Orchestrator(config, download=trello.download_attachment)
        with orchestrator.client, console.status("[bold]Downloading attachments…"):
            result = orchestrator.plan(card)

    rprint(f"[bold]{card.name}[/bold]  [dim]{len(card.attachments)} attachment(s)[/dim]\n")
    _print_plan(result)


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


@app.command()
def run(
    card_id: str = typer.Argument(..., help="Trello card ID"),
    mode: Optional[str] = typer.Option(
        None, "--mode", "-m", help="Force a mode: display | post | post-carousel"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Classify only; send nothing."),
    comment: bool = typer.Option(True, "--comment/--no-comment", help="Comment on the card."),
    label: bool = typer.Option(True, "--label/--no-label", help="Label the card on success."),
) -> None:
    """Publish a Trello card to AdPiler."""
    from config.settings import settings

    config = _load_config(mode)
    sheet = ClientMappingSheet()

    with TrelloClient() as trello:
        try:
            card = trello.get_card(card_id)
        except TrelloError as exc:
            rprint(f"[red]Trello error:[/red] {exc}")
            raise typer.Exit(1)

        orchestrator = Orchestrator(
            config,
            download=trello.download_attachment,
            mapping_lookup=sheet.lookup if sheet.csv_url else None,
            post_comment=trello.post_comment if comment and not dry_run else None,
            on_success=(
                (lambda c: trello.add_label(c, settings.uploaded_label_name)) if label else None
            ),
        )

        if dry_run:
            orchestrator.client.close()
            sheet.close()
            with console.status("[bold]Downloading attachments…"):
                result_plan = orchestrator.plan(card)
            _print_plan(result_plan)
            rprint("[dim]Dry run — nothing sent to AdPiler.[/dim]")
            return

        with console.status("[bold]Publishing to AdPiler…"):
            try:
                result = orchestrator.run(card)
            except PublishJobError as exc:
                rprint(f"[red]Publish failed:[/red] {exc}")
                raise typer.Exit(1)
            finally:
                orchestrator.client.close()
                sheet.close()

    record = result.record
    previews = "\n".join(f"  {url}" for url in result.preview_urls) or "  —"
    console.print(
        Panel(
            f"[bold]Mode:[/bold]      {record.mode.value}\n"
            f"[bold]Campaign:[/bold]  {record.campaign_id}\n"
            f"[bold]Creative:[/bold]  [cyan]{record.entity_id}[/cyan]\n"
            f"[bold]Uploaded:[/bold]  {record.uploaded_count} file(s)\n"
            f"[bold]Paid:[/bold]      {'yes' if record.paid else 'no'}\n"
            f"[bold]Preview:[/bold]\n{previews}",
            title=f"[green]✓ Published[/green] {card.name}",
            border_style="green",
            expand=False,
        )
    )
