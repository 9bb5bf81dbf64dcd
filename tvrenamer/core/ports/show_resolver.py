"""
Interface port pour la resolution des series et episodes.

Le resolveur possede le catalogue des series (Show) et de leurs episodes.
Les EpisodeRecord ne conservent que des references vers ces entites.
"""

from abc import ABC, abstractmethod
from typing import Optional

from tvrenamer.core.entities.media import Episode, Show


class IShowResolver(ABC):
    """
    Interface de resolution de series TV.

    - resolve_show : asynchrone, retourne un Show ou un FailedShow
    - load_listings : asynchrone, charge les episodes d'une serie resolue
    - resolve_episode : synchrone, une fois les listings charges
    - forget : asynchrone, efface les recherches et listings memorises
    """

    @abstractmethod
    async def resolve_show(self, name: str) -> Show:
        """
        Recherche une serie par nom.

        Args:
            name: Nom de serie extrait du nom de fichier

        Returns:
            Le Show trouve, ou un FailedShow si aucune serie ne correspond.
        """
        ...

    @abstractmethod
    async def load_listings(self, show: Show) -> None:
        """
        Charge les episodes d'une serie dans le catalogue.

        Raises:
            Exception: Toute erreur du fournisseur (reseau, API) est propagee ;
                l'appelant la traduit en listings_failed().
        """
        ...

    @abstractmethod
    def resolve_episode(self, show: Show, season: int, episode: int) -> Optional[Episode]:
        """
        Retourne l'episode (saison, episode) d'une serie deja chargee.

        Returns:
            L'Episode, ou None s'il est absent des listings.
        """
        ...

    async def forget(self, name: str, show: Optional[Show] = None) -> None:
        """
        Oublie ce qui a ete memorise pour une recherche (nouvelle demande explicite).

        Args:
            name: Nom recherche
            show: Serie obtenue pour ce nom, si connue (ses listings sont aussi oublies)

        Les resolveurs sans memoire n'ont rien a faire.
        """
        return None
