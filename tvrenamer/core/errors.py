"""
Exceptions du domaine.

Les issues attendues (serie introuvable, episode absent, numero mal forme)
sont representees par des statuts et ne levent jamais d'exception.
Les exceptions ci-dessous signalent des fautes de programmation ou des
decisions qui reviennent a l'appelant (conflit de destination).
"""

from pathlib import Path
from typing import Any


class TVRenamerError(Exception):
    """Classe de base des erreurs TVRenamer."""


class InvalidTransitionError(TVRenamerError):
    """
    Transition d'etat interdite sur un EpisodeRecord.

    Attributs:
        field: Nom du champ de statut concerne (series_status, file_status)
        source: Statut courant
        target: Statut demande
    """

    def __init__(self, field: str, source: Any, target: Any, detail: str = "") -> None:
        self.field = field
        self.source = source
        self.target = target
        message = f"Transition interdite sur {field}: {source} -> {target}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class SuffixChangeError(TVRenamerError, ValueError):
    """L'extension d'un EpisodeRecord ne peut pas changer."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"L'extension d'un fichier suivi ne peut pas changer: '{expected}' -> '{actual}'"
        )


class MoveConflictError(TVRenamerError):
    """
    Un autre fichier occupe deja la destination.

    Attributs:
        source: Fichier a deplacer
        destination: Chemin de destination deja occupe
    """

    def __init__(self, source: Path, destination: Path, reason: str = "") -> None:
        self.source = source
        self.destination = destination
        self.reason = reason or "existe deja"
        super().__init__(
            f"Le fichier {destination} {self.reason}. {source} n'a pas ete renomme !"
        )


class OrchestratorClosedError(TVRenamerError):
    """L'orchestrateur a ete arrete et n'accepte plus de travail."""
