"""
Adaptateurs de parsing pour TVRenamer.

- GuessitFilenameParser: Extrait serie/saison/episode/resolution avec guessit
"""
