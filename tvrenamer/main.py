"""
Point d'entree CLI de TVRenamer.

Initialise le container DI, configure le logging et fournit les commandes CLI.
"""

from typing import Annotated

import typer
from loguru import logger

from . import __version__
from .adapters.cli import rename, tokens
from .config import Settings
from .container import Container
from .logging_config import configure_logging, verbosity_to_level

app = typer.Typer(
    name="tvrenamer",
    help="Renommage et rangement d'episodes de series TV",
)
container = Container()

# Etat global pour les options de verbosite
state = {"verbose": 0, "quiet": False}


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Augmenter la verbosite (-v, -vv)"
        ),
    ] = 0,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Mode silencieux (erreurs uniquement)"),
    ] = False,
) -> None:
    """TVRenamer - Renommage d'episodes d'apres TVDB."""
    state["quiet"] = quiet
    state["verbose"] = 0 if quiet else verbose

    settings = get_config()
    level = settings.log_level
    if verbose or quiet:
        level = verbosity_to_level(verbose, quiet)
    configure_logging(
        log_level=level,
        log_file=settings.log_file,
        rotation_size=settings.log_rotation_size,
        retention_count=settings.log_retention_count,
    )


app.command()(rename)
app.command()(tokens)


def get_config() -> Settings:
    """Recupere les parametres de l'application depuis le container DI."""
    return container.config()


@app.command()
def info() -> None:
    """Affiche la configuration actuelle."""
    config = get_config()
    logger.info("Configuration TVRenamer")
    typer.echo(f"Destination : {config.destination_dir}")
    typer.echo(f"Deplacement : {'active' if config.move_enabled else 'desactive'}")
    typer.echo(f"Modele : {config.rename_template}")
    typer.echo(f"Prefixe de saison : {config.season_prefix!r}")
    typer.echo(f"Deplacements simultanes : {config.move_workers}")
    typer.echo(f"API TVDB : {'activee' if config.tvdb_enabled else 'desactivee'}")
    typer.echo(f"Cache : {config.cache_dir}")
    typer.echo(f"Niveau de log : {config.log_level}")


@app.command()
def version() -> None:
    """Affiche les informations de version."""
    typer.echo(f"TVRenamer v{__version__}")


def main() -> None:
    """Point d'entree de l'application."""
    logger.debug(f"Demarrage de TVRenamer {__version__}")
    app()


if __name__ == "__main__":
    main()
