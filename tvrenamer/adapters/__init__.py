"""
Couche adaptateurs (infrastructure).

Les adaptateurs implementent les ports definis dans core/ports/ :
- file_system : deplacement de fichiers avec progression (IFileMover)
- api/ : client TVDB implementant IShowResolver, cache et retry
- parsing/ : extraction serie/saison/episode avec guessit (IFilenameParser)
- cli/ : interface ligne de commande (Typer + Rich)

Chaque adaptateur depend de core/ mais core/ ne depend jamais des adaptateurs.
"""
