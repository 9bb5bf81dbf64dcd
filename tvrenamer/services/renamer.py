"""
Moteur de renommage des fichiers d'episodes.

Ce module expanse le modele de renommage choisi par l'utilisateur
(ex: "%S [%sx%0e] %t") en un nom de fichier concret, puis calcule le
repertoire de destination selon les preferences.

Exemple avec le modele par defaut :
    Breaking Bad [1x001] Pilot.mkv
"""

import re
import unicodedata
from datetime import date
from pathlib import Path
from typing import Optional

from loguru import logger
from pathvalidate import sanitize_filename

from tvrenamer.core.entities.episode_record import UNKNOWN_NUMBER, EpisodeRecord, SeriesStatus
from tvrenamer.core.value_objects.preferences import UserPreferences
from tvrenamer.core.value_objects.replacement_token import ReplacementToken


# Longueur maximale du nom de fichier (hors extension)
MAX_FILENAME_LENGTH = 200

# Remplacements explicites des caracteres interdits dans un nom de fichier
# Note: pathvalidate nettoie le reste (caracteres de controle, noms reserves)
ILLEGAL_CHAR_REPLACEMENTS: dict[str, str] = {
    "\\": "-",
    "/": "-",
    ":": " -",
    "|": "-",
    "*": "-",
    "?": "",
    "<": "",
    ">": "",
    '"': "'",
    "`": "'",
}

# Alternative des tokens, les plus longs d'abord ("%0s" avant "%s")
_TOKEN_PATTERN = re.compile(
    "|".join(
        re.escape(token.token)
        for token in sorted(ReplacementToken, key=lambda t: len(t.token), reverse=True)
    )
)
_TOKENS_BY_TEXT = {token.token: token for token in ReplacementToken}


def sanitize_title(text: str) -> str:
    """
    Nettoie une chaine pour l'utiliser comme nom de fichier.

    Transformations appliquees :
    - Normalisation Unicode NFKC
    - Caracteres interdits remplaces (voir ILLEGAL_CHAR_REPLACEMENTS)
    - Troncature a 200 caracteres maximum
    - Nettoyage pathvalidate (plateforme universelle)

    L'operation est idempotente : sanitize_title(sanitize_title(x)) == sanitize_title(x).

    Args:
        text: Texte a nettoyer.

    Returns:
        Texte valide pour un nom de fichier.
    """
    if not text:
        return ""

    text = unicodedata.normalize("NFKC", text)

    for char, replacement in ILLEGAL_CHAR_REPLACEMENTS.items():
        text = text.replace(char, replacement)

    text = text.strip()[:MAX_FILENAME_LENGTH]

    # replacement_text="" car les remplacements explicites sont deja faits
    text = sanitize_filename(text, platform="universal", replacement_text="")

    return text.strip()


def make_dot_title(title: str) -> str:
    """Remplace les suites d'espaces par des points ("The Episode" -> "The.Episode")."""
    return re.sub(r"\s+", ".", title.strip())


def format_number(number: int) -> str:
    """Numero simple, vide si inconnu."""
    if number == UNKNOWN_NUMBER or number < 0:
        return ""
    return str(number)


def zero_pad_two(number: int) -> str:
    """Numero sur 2 chiffres minimum, vide si inconnu."""
    if number == UNKNOWN_NUMBER or number < 0:
        return ""
    return f"{number:02d}"


def zero_pad_three(number: int) -> str:
    """Numero sur 3 chiffres minimum, vide si inconnu."""
    if number == UNKNOWN_NUMBER or number < 0:
        return ""
    return f"{number:03d}"


def format_air_date(air_date: Optional[date]) -> dict[ReplacementToken, str]:
    """
    Valeurs des tokens de date.

    Une date inconnue produit des chaines vides pour tous les tokens de date.
    """
    if air_date is None:
        return {token: "" for token in ReplacementToken.date_tokens()}
    return {
        ReplacementToken.DATE_DAY_NUM: str(air_date.day),
        ReplacementToken.DATE_DAY_NUMLZ: f"{air_date.day:02d}",
        ReplacementToken.DATE_MONTH_NUM: str(air_date.month),
        ReplacementToken.DATE_MONTH_NUMLZ: f"{air_date.month:02d}",
        ReplacementToken.DATE_YEAR_MIN: f"{air_date.year % 100:02d}",
        ReplacementToken.DATE_YEAR_FULL: f"{air_date.year:04d}",
    }


def expand_template(template: str, values: dict[ReplacementToken, str]) -> str:
    """
    Remplace chaque token du modele par sa valeur.

    Substitution en une seule passe : une valeur inseree n'est jamais
    relue comme token, meme si elle contient "%S" ou un antislash.
    Les tokens absents de `values` sont remplaces par une chaine vide.
    """
    return _TOKEN_PATTERN.sub(
        lambda match: values.get(_TOKENS_BY_TEXT[match.group(0)], ""),
        template,
    )


def describe_tokens() -> list[tuple[str, str]]:
    """Liste (token, description) pour l'aide utilisateur."""
    return [(token.token, token.description) for token in ReplacementToken]


class RenameTemplateEngine:
    """
    Moteur de renommage des episodes.

    Calcule le nom de base propose pour un EpisodeRecord resolu, ainsi que
    le repertoire et le chemin de destination. Sans etat hormis le cache
    porte par chaque record : peut etre utilise comme singleton.
    """

    def show_name(self, record: EpisodeRecord, preferences: UserPreferences) -> str:
        """Nom de serie a inserer, apres la table de substitution."""
        if record.show is None:
            logger.warning(f"Renommage sans serie resolue: {record}")
            name = record.filename_show
        else:
            if record.show.is_failed:
                logger.warning(f"Renommage avec une serie introuvable: {record}")
            name = record.show.name
        return preferences.override_show_name(name)

    def token_values(
        self, record: EpisodeRecord, preferences: UserPreferences
    ) -> dict[ReplacementToken, str]:
        """Valeurs de tous les tokens pour un record."""
        title = ""
        air_date = None
        if record.episode is not None:
            title = record.episode.title
            air_date = record.episode.air_date
            if air_date is None:
                logger.debug(f"Date de diffusion inconnue pour {record}")

        values = {
            ReplacementToken.SHOW_NAME: self.show_name(record, preferences),
            ReplacementToken.SEASON_NUM: format_number(record.season_num),
            ReplacementToken.SEASON_NUM_LEADING_ZERO: zero_pad_two(record.season_num),
            ReplacementToken.EPISODE_NUM: format_number(record.episode_num),
            ReplacementToken.EPISODE_NUM_LEADING_ZERO: zero_pad_three(record.episode_num),
            ReplacementToken.EPISODE_TITLE: title,
            ReplacementToken.EPISODE_TITLE_NO_SPACES: make_dot_title(title),
            ReplacementToken.EPISODE_RESOLUTION: record.filename_resolution,
        }
        values.update(format_air_date(air_date))
        return values

    def renamed_basename(self, record: EpisodeRecord, preferences: UserPreferences) -> str:
        """
        Nom de base propose (sans extension), nettoye pour le systeme de fichiers.

        Le resultat est memorise sur le record tant que les entrees ne changent pas.
        """
        cache_key = (
            preferences.rename_template,
            tuple(sorted(preferences.show_name_overrides.items())),
            record.filename_resolution,
            record.season_num,
            record.episode_num,
        )
        cached = record.cached_basename_for(cache_key)
        if cached is not None:
            return cached

        expanded = expand_template(
            preferences.rename_template, self.token_values(record, preferences)
        )
        basename = sanitize_title(expanded)

        if record.series_status == SeriesStatus.GOT_LISTINGS:
            record.remember_basename(basename, cache_key)
        return basename

    def show_dir_name(self, record: EpisodeRecord, preferences: UserPreferences) -> str:
        """Nom du repertoire de la serie."""
        return sanitize_title(self.show_name(record, preferences))

    def season_dir_name(self, record: EpisodeRecord, preferences: UserPreferences) -> Optional[str]:
        """Nom du sous-repertoire de saison, None si desactive."""
        if not preferences.season_folders_enabled:
            return None
        if preferences.season_prefix_leading_zero:
            season = zero_pad_two(record.season_num)
        else:
            season = format_number(record.season_num)
        return sanitize_title(f"{preferences.season_prefix}{season}")

    def move_to_directory(self, record: EpisodeRecord, preferences: UserPreferences) -> Path:
        """
        Repertoire final du fichier : destination / serie [/ saison].

        Le "repertoire de destination" est la racine choisie par l'utilisateur ;
        le fichier est range dans un sous-repertoire de la serie et
        eventuellement de la saison.
        """
        if preferences.destination_dir is None:
            raise ValueError("Aucun repertoire de destination configure")
        directory = Path(preferences.destination_dir) / self.show_dir_name(record, preferences)
        season_dir = self.season_dir_name(record, preferences)
        if season_dir:
            directory = directory / season_dir
        return directory

    def move_to_path(self, record: EpisodeRecord, preferences: UserPreferences) -> Path:
        """Repertoire cible : move-to si deplacement actif, sinon le repertoire actuel."""
        if preferences.move_enabled:
            return self.move_to_directory(record, preferences)
        return record.path.absolute().parent

    def new_filename(self, record: EpisodeRecord, preferences: UserPreferences) -> str:
        """Nom de fichier cible (avec extension)."""
        if preferences.rename_enabled:
            return self.renamed_basename(record, preferences) + record.filename_suffix
        return record.filename

    def destination_path(self, record: EpisodeRecord, preferences: UserPreferences) -> Path:
        """Chemin complet de destination."""
        return self.move_to_path(record, preferences) / self.new_filename(record, preferences)

    def replacement_text(self, record: EpisodeRecord, preferences: UserPreferences) -> str:
        """Texte affiche pour un record resolu (GOT_LISTINGS)."""
        if preferences.move_enabled:
            return str(self.move_to_directory(record, preferences) / self.new_filename(record, preferences))
        # Ni renommage ni deplacement : reglage sans effet, on affiche le nom actuel
        return self.new_filename(record, preferences)
