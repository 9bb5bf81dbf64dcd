"""
Instantane immutable des preferences utilisateur.

Le moteur de renommage et l'orchestrateur de deplacement recoivent
explicitement cet instantane. Il est construit depuis Settings
(voir tvrenamer.config) et ne change jamais apres creation.
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_RENAME_TEMPLATE = "%S [%sx%0e] %t"
DEFAULT_SEASON_PREFIX = "Season "


@dataclass(frozen=True)
class UserPreferences:
    """
    Preferences de renommage et de deplacement.

    Attributs :
        destination_dir : Repertoire racine de destination (None = pas de deplacement possible)
        season_prefix : Prefixe du sous-repertoire de saison (vide = pas de sous-repertoire)
        season_prefix_leading_zero : Numero de saison sur 2 chiffres dans le sous-repertoire
        move_enabled : Deplacer les fichiers vers le repertoire de destination
        rename_enabled : Renommer les fichiers selon le modele
        rename_template : Modele de renommage (voir ReplacementToken)
        show_name_overrides : Table nom fournisseur -> nom prefere
        move_workers : Nombre de deplacements simultanes
    """

    destination_dir: Optional[Path] = None
    season_prefix: str = DEFAULT_SEASON_PREFIX
    season_prefix_leading_zero: bool = False
    move_enabled: bool = False
    rename_enabled: bool = True
    rename_template: str = DEFAULT_RENAME_TEMPLATE
    show_name_overrides: Mapping[str, str] = field(default_factory=dict)
    move_workers: int = 1

    def __post_init__(self) -> None:
        if self.move_workers < 1:
            raise ValueError("move_workers doit etre >= 1")
        if self.move_enabled and self.destination_dir is None:
            raise ValueError("destination_dir est requis quand move_enabled est actif")

    @property
    def season_folders_enabled(self) -> bool:
        """Les sous-repertoires de saison ne sont crees que si le prefixe est non vide."""
        return bool(self.season_prefix.strip())

    def override_show_name(self, show_name: str) -> str:
        """Applique la table de substitution des noms de series."""
        return self.show_name_overrides.get(show_name, show_name)

    def with_changes(self, **changes) -> "UserPreferences":
        """Retourne une copie modifiee de l'instantane."""
        return replace(self, **changes)
