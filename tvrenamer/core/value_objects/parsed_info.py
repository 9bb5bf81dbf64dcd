"""
Objet valeur pour les informations extraites d'un nom de fichier.

Les champs sont conserves sous forme de chaines brutes : la conversion
en numeros de saison/episode est faite par EpisodeRecord, qui tolere
les valeurs mal formees.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ParsedFilename:
    """
    Informations devinees depuis un nom de fichier d'episode.

    Attributs:
        show: Partie du nom supposee etre le nom de la serie
        season: Numero de saison brut (ex: "02")
        episode: Numero d'episode brut (ex: "05")
        resolution: Resolution video (ex: "720p"), vide si inconnue
        parsed: False si le nom n'a pas pu etre decoupe
    """

    show: str = ""
    season: str = ""
    episode: str = ""
    resolution: str = ""
    parsed: bool = True
