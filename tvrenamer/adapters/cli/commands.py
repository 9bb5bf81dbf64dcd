"""
Commandes CLI pour le renommage d'episodes (rename, tokens).
"""

import asyncio
import signal
from pathlib import Path
from typing import Annotated, Optional

import typer
from loguru import logger
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.prompt import Confirm
from rich.table import Table

from tvrenamer.adapters.cli.helpers import (
    console,
    file_status_label,
    status_style,
    suppress_loguru,
    with_container,
)
from tvrenamer.core.entities.episode_record import EpisodeRecord
from tvrenamer.core.value_objects.preferences import UserPreferences
from tvrenamer.core.value_objects.replacement_token import ReplacementToken
from tvrenamer.services.orchestrator import BatchReport, MoveItem, MoveRejection
from tvrenamer.services.renamer import (
    RenameTemplateEngine,
    describe_tokens,
    expand_template,
    sanitize_title,
)

# Valeurs d'exemple pour la commande tokens
_SAMPLE_VALUES = {
    ReplacementToken.SHOW_NAME: "Show Name",
    ReplacementToken.SEASON_NUM: "2",
    ReplacementToken.SEASON_NUM_LEADING_ZERO: "02",
    ReplacementToken.EPISODE_NUM: "5",
    ReplacementToken.EPISODE_NUM_LEADING_ZERO: "005",
    ReplacementToken.EPISODE_TITLE: "The Episode",
    ReplacementToken.EPISODE_TITLE_NO_SPACES: "The.Episode",
    ReplacementToken.EPISODE_RESOLUTION: "720p",
    ReplacementToken.DATE_DAY_NUM: "7",
    ReplacementToken.DATE_DAY_NUMLZ: "07",
    ReplacementToken.DATE_MONTH_NUM: "3",
    ReplacementToken.DATE_MONTH_NUMLZ: "03",
    ReplacementToken.DATE_YEAR_MIN: "11",
    ReplacementToken.DATE_YEAR_FULL: "2011",
}


def rename(
    paths: Annotated[
        list[Path],
        typer.Argument(help="Fichiers ou repertoires contenant les episodes"),
    ],
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Affiche les nouveaux noms sans deplacer"),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Ne pas demander de confirmation"),
    ] = False,
    move: Annotated[
        Optional[bool],
        typer.Option("--move/--no-move", help="Deplacer vers le repertoire de destination"),
    ] = None,
    destination: Annotated[
        Optional[Path],
        typer.Option("--destination", "-d", help="Repertoire de destination"),
    ] = None,
    template: Annotated[
        Optional[str],
        typer.Option("--template", "-t", help="Gabarit de renommage (voir 'tokens')"),
    ] = None,
) -> None:
    """Renomme (et deplace) des episodes d'apres les listings TVDB."""
    asyncio.run(_rename_async(paths, dry_run, yes, move, destination, template))


@with_container()
async def _rename_async(
    container,
    paths: list[Path],
    dry_run: bool,
    yes: bool,
    move: Optional[bool],
    destination: Optional[Path],
    template: Optional[str],
) -> None:
    """Implementation async de la commande rename."""
    settings = container.config()
    if not settings.tvdb_enabled:
        console.print(
            "[red]Cle API TVDB manquante : definir TVRENAMER_TVDB_API_KEY.[/red]"
        )
        raise typer.Exit(1)

    try:
        preferences = _apply_overrides(container.preferences(), move, destination, template)
    except ValueError as e:
        console.print(f"[red]Preferences invalides : {e}[/red]")
        raise typer.Exit(1)

    file_mover = container.file_mover()
    parser = container.filename_parser()
    engine = container.template_engine()

    files = list(file_mover.list_video_files(paths))
    if not files:
        console.print("[yellow]Aucun fichier video trouve.[/yellow]")
        raise typer.Exit(0)

    session = container.rename_session()
    try:
        async with session:
            with console.status(f"Recherche de {len(files)} episode(s)..."):
                for path in files:
                    session.add_file(path, parser.parse(path.name))
                await session.wait_idle()
    finally:
        await container.tvdb_resolver().close()
        container.api_cache().close()

    records = session.records()
    with suppress_loguru():
        console.print(_preview_table(records, preferences, engine))

    ready = session.ready_records()
    if not ready:
        console.print("[yellow]Aucun episode pret a etre renomme.[/yellow]")
        raise typer.Exit(0)

    if dry_run:
        console.print(f"[dim]Mode dry-run : {len(ready)} fichier(s) non modifie(s).[/dim]")
        return

    if not yes and not Confirm.ask(f"Renommer {len(ready)} fichier(s) ?", default=True):
        console.print("[yellow]Operation annulee.[/yellow]")
        return

    report = await _execute_batch(container, ready, preferences)
    _print_report(report)
    if report.failed:
        raise typer.Exit(1)


def _apply_overrides(
    preferences: UserPreferences,
    move: Optional[bool],
    destination: Optional[Path],
    template: Optional[str],
) -> UserPreferences:
    """Applique les options de ligne de commande aux preferences."""
    changes = {}
    if destination is not None:
        changes["destination_dir"] = destination.expanduser()
    if move is not None:
        changes["move_enabled"] = move
    if template:
        changes["rename_template"] = template
    if not changes:
        return preferences
    return preferences.with_changes(**changes)


def _preview_table(
    records: list[EpisodeRecord],
    preferences: UserPreferences,
    engine: RenameTemplateEngine,
) -> Table:
    table = Table(title="Episodes", show_lines=False)
    table.add_column("Fichier actuel", style="bold")
    table.add_column("Nouveau nom")
    table.add_column("Etat", justify="center")

    for record in records:
        text = escape(record.compute_display_text(preferences, engine))
        style = status_style(record)
        table.add_row(
            escape(record.filename),
            f"[{style}]{text}[/{style}]",
            file_status_label(record),
        )
    return table


async def _execute_batch(
    container,
    records: list[EpisodeRecord],
    preferences: UserPreferences,
) -> BatchReport:
    """Deplace les records approuves avec une barre de progression Rich."""
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        overall = progress.add_task("Renommage", total=1.0)

        def on_progress(fraction: float) -> None:
            progress.update(overall, completed=fraction)

        def on_item_done(item: MoveItem) -> None:
            if item.error:
                progress.console.print(f"[red]{escape(item.source.name)} : {escape(item.error)}[/red]")

        def on_rejected(rejection: MoveRejection) -> None:
            progress.console.print(f"[yellow]{escape(rejection.reason)}[/yellow]")

        orchestrator = container.move_orchestrator(
            preferences=preferences,
            on_progress=on_progress,
            on_item_done=on_item_done,
            on_rejected=on_rejected,
        )

        # Ctrl-C : les deplacements en cours se terminent, les autres sont annules
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, orchestrator.shutdown)
        except (NotImplementedError, RuntimeError):
            logger.debug("Gestionnaire SIGINT indisponible")

        try:
            return await orchestrator.run(records)
        finally:
            try:
                loop.remove_signal_handler(signal.SIGINT)
            except (NotImplementedError, RuntimeError):
                pass


def _print_report(report: BatchReport) -> None:
    lines = [f"[green]Renommes : {report.success_count}[/green]"]
    if report.failed:
        lines.append(f"[red]Echecs : {len(report.failed)}[/red]")
    if report.cancelled:
        lines.append(f"[yellow]Annules : {len(report.cancelled)}[/yellow]")
    if report.rejected:
        lines.append(
            f"[yellow]Ecartes : {len(report.rejected)} "
            f"(dont {len(report.conflicts)} conflit(s))[/yellow]"
        )
    console.print(Panel("\n".join(lines), title="Resultat", expand=False))


def tokens(
    template: Annotated[
        Optional[str],
        typer.Option("--template", "-t", help="Gabarit a expliquer"),
    ] = None,
) -> None:
    """Liste les jetons disponibles pour le gabarit de renommage."""
    table = Table(title="Jetons de renommage")
    table.add_column("Jeton", style="cyan")
    table.add_column("Description")
    for token, description in describe_tokens():
        table.add_row(token, description)
    console.print(table)

    if template:
        example = expand_template(template, _SAMPLE_VALUES)
        console.print(f"Gabarit : [bold]{template}[/bold]")
        console.print(f"Exemple : [green]{sanitize_title(example)}[/green]")
