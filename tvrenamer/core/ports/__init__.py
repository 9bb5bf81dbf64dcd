"""
Ports (interfaces abstraites) definissant les contrats pour les adaptateurs.

Ports :
- IShowResolver : Resolution des series et episodes (catalogue)
- IFileMover : Deplacement de fichiers avec progression
- IFilenameParser : Extraction serie/saison/episode depuis un nom de fichier
"""

from tvrenamer.core.ports.file_mover import IFileMover, ProgressSink
from tvrenamer.core.ports.parser import IFilenameParser
from tvrenamer.core.ports.show_resolver import IShowResolver

__all__ = [
    "IFileMover",
    "IFilenameParser",
    "IShowResolver",
    "ProgressSink",
]
