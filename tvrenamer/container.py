"""
Container d'injection de dependances via dependency-injector.

Fournit une gestion centralisee des dependances pour la CLI.
"""

from dependency_injector import containers, providers

from .adapters.api.cache import APICache
from .adapters.api.tvdb_client import TVDBShowResolver
from .adapters.file_system import FileSystemMover
from .adapters.parsing.guessit_parser import GuessitFilenameParser
from .config import Settings
from .services.orchestrator import DirectoryLocks, MoveOrchestrator
from .services.renamer import RenameTemplateEngine
from .services.session import RenameSession
from .services.show_store import ShowStore


class Container(containers.DeclarativeContainer):
    """Container DI de l'application.

    Utilisation :
        container = Container()
        session = container.rename_session()
        orchestrator = container.move_orchestrator(on_progress=callback)
    """

    # Configuration - singleton charge une seule fois
    config = providers.Singleton(Settings)

    # Instantane immutable des preferences pour les services
    preferences = providers.Singleton(
        lambda settings: settings.to_preferences(),
        config,
    )

    # Adapters - implementations concretes des ports
    file_mover = providers.Singleton(FileSystemMover)
    filename_parser = providers.Singleton(GuessitFilenameParser)

    api_cache = providers.Singleton(
        APICache,
        cache_dir=config.provided.cache_dir,
    )

    # Si la cle est absente, la CLI refuse la resolution avant d'utiliser le client
    tvdb_resolver = providers.Singleton(
        TVDBShowResolver,
        api_key=config.provided.tvdb_api_key,
        cache=api_cache,
        language=config.provided.tvdb_language,
        max_attempts=config.provided.tvdb_max_attempts,
    )

    # Deduplication des recherches - partagee par les sessions
    show_store = providers.Singleton(ShowStore, resolver=tvdb_resolver)

    # Moteur de renommage (sans etat - Singleton)
    template_engine = providers.Singleton(RenameTemplateEngine)

    # Verrous de repertoire partages par tous les lots
    directory_locks = providers.Singleton(DirectoryLocks)

    # Session et orchestrateur - Factory : un par lot
    rename_session = providers.Factory(RenameSession, resolver=show_store)

    move_orchestrator = providers.Factory(
        MoveOrchestrator,
        file_mover=file_mover,
        engine=template_engine,
        preferences=preferences,
        directory_locks=directory_locks,
    )
