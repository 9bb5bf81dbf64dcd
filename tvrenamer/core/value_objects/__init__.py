"""
Objets valeur immutables representant des concepts du domaine sans identite.

Exports :
- ReplacementToken : Vocabulaire des tokens du modele de renommage
- UserPreferences : Instantane des preferences de renommage/deplacement
- ParsedFilename : Informations extraites d'un nom de fichier
"""

from tvrenamer.core.value_objects.parsed_info import ParsedFilename
from tvrenamer.core.value_objects.preferences import (
    DEFAULT_RENAME_TEMPLATE,
    DEFAULT_SEASON_PREFIX,
    UserPreferences,
)
from tvrenamer.core.value_objects.replacement_token import ReplacementToken

__all__ = [
    "DEFAULT_RENAME_TEMPLATE",
    "DEFAULT_SEASON_PREFIX",
    "ParsedFilename",
    "ReplacementToken",
    "UserPreferences",
]
