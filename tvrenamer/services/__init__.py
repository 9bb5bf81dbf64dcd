"""
Couche services (cas d'utilisation).

- renamer : moteur de renommage (modele -> nom de fichier, destination)
- show_store : deduplication des recherches de series
- session : registre des fichiers et boucle de coordination des resolutions
- orchestrator : execution des deplacements par lots

Les services dependent des ports definis dans core/, jamais des
implementations concretes de adapters/.
"""
