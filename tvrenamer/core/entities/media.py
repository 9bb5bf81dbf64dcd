"""
Entites de metadonnees des series.

Les instances sont creees et conservees par le catalogue du resolveur de
series. Un EpisodeRecord ne fait que les referencer : il ne les possede pas
et ne les modifie jamais (dataclasses figees).
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class Show:
    """
    Serie TV resolue depuis le catalogue.

    Attributs:
        key: Cle du catalogue (ID fournisseur)
        name: Nom canonique retourne par le fournisseur
    """

    key: str
    name: str

    @property
    def is_failed(self) -> bool:
        """True si la resolution a echoue (voir FailedShow)."""
        return False


@dataclass(frozen=True)
class FailedShow(Show):
    """
    Marqueur de resolution echouee.

    Distinct de "pas encore resolu" (show = None sur le record) :
    le nom demande est conserve pour l'affichage.
    """

    @classmethod
    def for_name(cls, name: str) -> "FailedShow":
        """Construit le marqueur pour un nom de serie introuvable."""
        return cls(key=f"failed:{name.lower()}", name=name)

    @property
    def is_failed(self) -> bool:
        return True


@dataclass(frozen=True)
class Episode:
    """
    Episode d'une serie, identifie par (saison, episode).

    Attributs:
        show_key: Cle de la serie parente dans le catalogue
        season_number: Numero de saison
        episode_number: Numero d'episode dans la saison
        title: Titre de l'episode
        air_date: Date de premiere diffusion (None si inconnue)
    """

    show_key: str
    season_number: int
    episode_number: int
    title: str = ""
    air_date: Optional[date] = None
