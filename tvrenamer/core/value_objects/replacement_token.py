"""
Tokens de remplacement du modele de renommage.

Le modele de renommage saisi par l'utilisateur contient des tokens
(ex: "%S [%sx%0e] %t") remplaces par les valeurs de l'episode.
L'orthographe des tokens est la surface de compatibilite des modeles :
elle ne doit pas changer.
"""

from enum import Enum


class ReplacementToken(Enum):
    """
    Vocabulaire fixe des tokens de remplacement.

    Chaque membre porte le token litteral et une description courte
    affichee par la commande `tvrenamer tokens`.
    """

    SHOW_NAME = ("%S", "Nom de la serie")
    SEASON_NUM = ("%s", "Numero de saison")
    SEASON_NUM_LEADING_ZERO = ("%0s", "Numero de saison (2 chiffres)")
    EPISODE_NUM = ("%e", "Numero d'episode")
    EPISODE_NUM_LEADING_ZERO = ("%0e", "Numero d'episode (3 chiffres)")
    EPISODE_TITLE = ("%t", "Titre de l'episode")
    EPISODE_TITLE_NO_SPACES = ("%T", "Titre de l'episode (points au lieu des espaces)")
    EPISODE_RESOLUTION = ("%r", "Resolution video")
    DATE_DAY_NUM = ("%dd", "Jour de diffusion")
    DATE_DAY_NUMLZ = ("%dD", "Jour de diffusion (2 chiffres)")
    DATE_MONTH_NUM = ("%dm", "Mois de diffusion")
    DATE_MONTH_NUMLZ = ("%dM", "Mois de diffusion (2 chiffres)")
    DATE_YEAR_MIN = ("%dy", "Annee de diffusion (2 chiffres)")
    DATE_YEAR_FULL = ("%dY", "Annee de diffusion (4 chiffres)")

    def __init__(self, token: str, description: str) -> None:
        self.token = token
        self.description = description

    @classmethod
    def date_tokens(cls) -> frozenset["ReplacementToken"]:
        """Tokens derives de la date de diffusion."""
        return frozenset({
            cls.DATE_DAY_NUM,
            cls.DATE_DAY_NUMLZ,
            cls.DATE_MONTH_NUM,
            cls.DATE_MONTH_NUMLZ,
            cls.DATE_YEAR_MIN,
            cls.DATE_YEAR_FULL,
        })
