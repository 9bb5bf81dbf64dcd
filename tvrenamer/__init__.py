"""
TVRenamer - Renommage et rangement d'episodes de series TV.

Ce package associe des fichiers video locaux aux metadonnees d'episodes,
calcule un nom de destination canonique puis execute les renommages/
deplacements par lots avec suivi de progression et gestion des conflits.

Architecture : Hexagonale (Ports et Adaptateurs)
- core/ : Couche domaine (entites, ports, objets valeur)
- services/ : Couche application (session, moteur de renommage, orchestrateur)
- adapters/ : Couche infrastructure (CLI, client TVDB, systeme de fichiers)
"""

__version__ = "0.1.0"
