"""
Configuration de l'application via pydantic-settings.

La configuration est chargee depuis les variables d'environnement avec le prefixe
TVRENAMER_, et peut optionnellement etre fournie via un fichier .env.

La cle API TVDB est optionnelle : la resolution en ligne est desactivee si
elle n'est pas fournie.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tvrenamer.core.value_objects.preferences import (
    DEFAULT_RENAME_TEMPLATE,
    DEFAULT_SEASON_PREFIX,
    UserPreferences,
)

# Fichier .env a la racine du projet (parent de tvrenamer/)
_PROJECT_ROOT = Path(__file__).parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Parametres de l'application avec support des variables d'environnement.

    Tous les parametres peuvent etre surcharges via des variables d'environnement
    avec le prefixe TVRENAMER_.
    Exemples : TVRENAMER_MOVE_ENABLED=true
               TVRENAMER_SHOW_NAME_OVERRIDES='{"Castle (2009)": "Castle"}'

    Les chemins sont automatiquement etendus (~ -> repertoire home).
    """

    model_config = SettingsConfigDict(
        env_prefix="TVRENAMER_",
        env_file=_ENV_FILE if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Renommage / deplacement
    destination_dir: Path = Field(default=Path("~/TV"))
    season_prefix: str = Field(default=DEFAULT_SEASON_PREFIX)
    season_prefix_leading_zero: bool = Field(default=False)
    move_enabled: bool = Field(default=False)
    rename_enabled: bool = Field(default=True)
    rename_template: str = Field(default=DEFAULT_RENAME_TEMPLATE, min_length=1)
    show_name_overrides: dict[str, str] = Field(default_factory=dict)
    move_workers: int = Field(default=1, ge=1, le=16)

    # Fournisseur de metadonnees (OPTIONNEL)
    tvdb_api_key: Optional[str] = Field(default=None)
    tvdb_language: str = Field(default="en")
    tvdb_max_attempts: int = Field(default=5, ge=1, le=10)
    cache_dir: Path = Field(default=Path("~/.cache/tvrenamer"))

    # Logging (fichier + stderr, rotation 10MB, 5 fichiers de retention)
    log_level: str = Field(default="INFO")
    log_file: Path = Field(default=Path("logs/tvrenamer.log"))
    log_rotation_size: str = Field(default="10 MB")
    log_retention_count: int = Field(default=5)

    @field_validator("destination_dir", "cache_dir", "log_file", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        """Etend ~ vers le repertoire home dans les chemins."""
        return Path(v).expanduser()

    @property
    def tvdb_enabled(self) -> bool:
        """Verifie si l'API TVDB est configuree."""
        return bool(self.tvdb_api_key)

    def to_preferences(self) -> UserPreferences:
        """Instantane immutable des preferences pour les services."""
        return UserPreferences(
            destination_dir=self.destination_dir,
            season_prefix=self.season_prefix,
            season_prefix_leading_zero=self.season_prefix_leading_zero,
            move_enabled=self.move_enabled,
            rename_enabled=self.rename_enabled,
            rename_template=self.rename_template,
            show_name_overrides=dict(self.show_name_overrides),
            move_workers=self.move_workers,
        )
