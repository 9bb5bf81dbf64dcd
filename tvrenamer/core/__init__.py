"""
Couche domaine de TVRenamer.

Contient les entites (EpisodeRecord, Show, Episode), les objets valeur
(tokens de renommage, preferences, informations de parsing) et les ports
vers les collaborateurs externes (resolution de series, deplacement de fichiers).
"""
