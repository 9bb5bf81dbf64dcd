"""
Tests unitaires pour EpisodeRecord.

Tests couvrant:
- Extension immuable et statut fichier a la construction
- Conversion des numeros avec valeur sentinelle
- Tables de transitions serie et fichier
- listings_complete sans serie resolue (faute de programmation)
- Texte affiche pour chaque statut serie
- Cache du nom propose
"""

from pathlib import Path

import pytest

from tvrenamer.core.entities.episode_record import (
    ADDED_PLACEHOLDER,
    BROKEN_PLACEHOLDER,
    DOWNLOADING_FAILED_PLACEHOLDER,
    FILE_TRANSITIONS,
    NO_FILE_SIZE,
    SERIES_TRANSITIONS,
    UNKNOWN_NUMBER,
    EpisodeRecord,
    FileStatus,
    SeriesStatus,
    parse_number,
)
from tvrenamer.core.entities.media import FailedShow, Show
from tvrenamer.core.errors import InvalidTransitionError, SuffixChangeError


OFFICE = Show("73244", "The Office (US)")


@pytest.fixture
def record(make_video) -> EpisodeRecord:
    """Record parse pour The Office S02E05, fichier existant."""
    record = EpisodeRecord(make_video("the.office.s02e05.720p.mkv", b"x" * 42))
    record.set_filename_show("the office")
    record.set_filename_season("2")
    record.set_filename_episode("05")
    record.set_filename_resolution("720p")
    record.set_parsed()
    return record


class TestConstruction:
    """Tests de construction et de rattachement au chemin."""

    def test_existing_file_records_size(self, record: EpisodeRecord) -> None:
        assert record.exists is True
        assert record.file_size == 42
        assert record.file_status == FileStatus.UNCHECKED
        assert record.filename_suffix == ".mkv"

    def test_missing_file_starts_as_no_file(self, tmp_path: Path) -> None:
        """Un chemin inexistant donne NO_FILE et une taille sentinelle."""
        record = EpisodeRecord(tmp_path / "absent.avi")
        assert record.exists is False
        assert record.file_size == NO_FILE_SIZE
        assert record.file_status == FileStatus.NO_FILE

    def test_reappeared_file_returns_to_unchecked(self, tmp_path: Path) -> None:
        """Un fichier cree apres le record peut a nouveau etre deplace."""
        path = tmp_path / "late.mkv"
        record = EpisodeRecord(path)
        assert record.file_status == FileStatus.NO_FILE

        path.write_bytes(b"x" * 7)
        record.refresh()

        assert record.file_status == FileStatus.UNCHECKED
        assert record.exists is True
        assert record.file_size == 7
        record.set_moving()
        assert record.file_status == FileStatus.MOVING

    def test_vanished_file_during_move_raises(self, record: EpisodeRecord) -> None:
        record.set_moving()
        record.path.unlink()
        with pytest.raises(InvalidTransitionError):
            record.refresh()

    def test_suffix_cannot_change(self, record: EpisodeRecord, tmp_path: Path) -> None:
        """Changer l'extension est refuse et le chemin est conserve."""
        original = record.path
        with pytest.raises(SuffixChangeError):
            record.set_path(tmp_path / "renamed.avi")
        assert record.path == original
        assert record.filename_suffix == ".mkv"

    def test_same_suffix_path_accepted(self, record: EpisodeRecord, tmp_path: Path) -> None:
        record.set_path(tmp_path / "other.mkv")
        assert record.path == tmp_path / "other.mkv"
        assert record.filename == "other.mkv"

    def test_suffix_error_is_value_error(self, record: EpisodeRecord, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            record.set_path(tmp_path / "no_suffix")


class TestNumberParsing:
    """Tests de conversion saison / episode."""

    @pytest.mark.parametrize("raw,expected", [("2", 2), ("05", 5), (" 12 ", 12), ("0", 0)])
    def test_numeric_strings(self, raw: str, expected: int) -> None:
        assert parse_number(raw) == expected

    @pytest.mark.parametrize("raw", ["", "two", "2x", None, "1.5"])
    def test_non_numeric_gives_sentinel(self, raw) -> None:
        assert parse_number(raw) == UNKNOWN_NUMBER

    def test_setters_keep_raw_string(self, record: EpisodeRecord) -> None:
        record.set_filename_episode("abc")
        assert record.filename_episode == "abc"
        assert record.episode_num == UNKNOWN_NUMBER

        record.set_filename_season(None)
        assert record.filename_season == ""
        assert record.season_num == UNKNOWN_NUMBER


class TestParseStatus:

    def test_parse_flags(self, tmp_path: Path) -> None:
        record = EpisodeRecord(tmp_path / "x.mkv")
        assert record.was_parsed() is False
        record.set_parsed()
        assert record.was_parsed() is True
        record.set_fail_to_parse()
        assert record.was_parsed() is False


class TestSeriesTransitions:
    """Tests du cycle de vie de la resolution serie."""

    def test_show_then_listings(self, record: EpisodeRecord, resolver) -> None:
        record.set_show(OFFICE)
        assert record.series_status == SeriesStatus.GOT_SHOW
        assert record.is_ready() is False

        record.listings_complete(resolver)
        assert record.series_status == SeriesStatus.GOT_LISTINGS
        assert record.episode.title == "Halloween"
        assert record.is_ready() is True

    def test_failed_show_gives_unfound(self, record: EpisodeRecord) -> None:
        record.set_show(FailedShow.for_name("the office"))
        assert record.series_status == SeriesStatus.UNFOUND
        assert record.show.is_failed

    def test_missing_episode_gives_no_listings(self, record: EpisodeRecord, resolver) -> None:
        record.set_filename_episode("99")
        record.set_show(OFFICE)
        record.listings_complete(resolver)
        assert record.series_status == SeriesStatus.NO_LISTINGS
        assert record.episode is None
        assert record.is_ready() is False

    def test_listings_without_show_raises_and_forces_unfound(
        self, record: EpisodeRecord, resolver
    ) -> None:
        """Listings recus en NOT_STARTED : faute signalee, etat force a UNFOUND."""
        with pytest.raises(InvalidTransitionError):
            record.listings_complete(resolver)
        assert record.series_status == SeriesStatus.UNFOUND
        assert record.episode is None

    def test_listings_after_failed_show_raises(self, record: EpisodeRecord, resolver) -> None:
        record.set_show(FailedShow.for_name("nope"))
        with pytest.raises(InvalidTransitionError):
            record.listings_complete(resolver)
        assert record.series_status == SeriesStatus.UNFOUND

    def test_second_show_rejected(self, record: EpisodeRecord) -> None:
        record.set_show(OFFICE)
        with pytest.raises(InvalidTransitionError):
            record.set_show(OFFICE)

    def test_listings_failed_from_got_show(self, record: EpisodeRecord) -> None:
        record.set_show(OFFICE)
        record.listings_failed()
        assert record.series_status == SeriesStatus.NO_LISTINGS

    def test_reset_lookup_returns_to_not_started(self, record: EpisodeRecord, resolver) -> None:
        record.set_show(OFFICE)
        record.listings_complete(resolver)
        record.reset_lookup()
        assert record.series_status == SeriesStatus.NOT_STARTED
        assert record.show is None
        assert record.episode is None

    def test_series_table_terminal_states(self) -> None:
        for status in (SeriesStatus.UNFOUND, SeriesStatus.GOT_LISTINGS, SeriesStatus.NO_LISTINGS):
            assert SERIES_TRANSITIONS[status] == frozenset()

    def test_tables_cover_every_status(self) -> None:
        assert set(SERIES_TRANSITIONS) == set(SeriesStatus)
        assert set(FILE_TRANSITIONS) == set(FileStatus)


class TestFileTransitions:
    """Tests des statuts fichier."""

    def test_moving_then_renamed(self, record: EpisodeRecord, tmp_path: Path) -> None:
        target = tmp_path / "moved.mkv"
        record.path.rename(target)

        record.set_moving()
        record.set_renamed(target)

        assert record.file_status == FileStatus.RENAMED
        assert record.path == target
        assert record.exists is True

    def test_moving_then_failed(self, record: EpisodeRecord) -> None:
        record.set_moving()
        record.set_fail_to_move()
        assert record.file_status == FileStatus.FAIL_TO_MOVE

    def test_renamed_requires_moving(self, record: EpisodeRecord) -> None:
        with pytest.raises(InvalidTransitionError):
            record.set_renamed()

    def test_no_file_cannot_move(self, record: EpisodeRecord) -> None:
        record.set_does_not_exist()
        assert record.file_status == FileStatus.NO_FILE
        assert record.file_size == NO_FILE_SIZE
        with pytest.raises(InvalidTransitionError):
            record.set_moving()
        assert FILE_TRANSITIONS[FileStatus.NO_FILE] == frozenset({FileStatus.UNCHECKED})

    def test_failed_move_can_be_retried(self, record: EpisodeRecord) -> None:
        record.set_moving()
        record.set_fail_to_move()
        record.set_moving()
        assert record.file_status == FileStatus.MOVING


class TestDisplayText:
    """Texte affiche : chaque statut serie a un rendu."""

    def test_not_started(self, record, preferences, engine) -> None:
        assert record.compute_display_text(preferences, engine) == ADDED_PLACEHOLDER

    def test_got_show_shows_name_in_brackets(self, record, preferences, engine) -> None:
        record.set_show(OFFICE)
        assert record.compute_display_text(preferences, engine) == "<The Office (US)>"

    def test_unfound(self, record, preferences, engine) -> None:
        record.set_show(FailedShow.for_name("the office"))
        assert record.compute_display_text(preferences, engine) == BROKEN_PLACEHOLDER

    def test_no_listings(self, record, preferences, engine) -> None:
        record.set_show(OFFICE)
        record.listings_failed()
        assert record.compute_display_text(preferences, engine) == DOWNLOADING_FAILED_PLACEHOLDER

    def test_got_listings_uses_engine(self, record, preferences, engine, resolver) -> None:
        record.set_show(OFFICE)
        record.listings_complete(resolver)
        assert (
            record.compute_display_text(preferences, engine)
            == "The Office (US) [2x005] Halloween.mkv"
        )

    def test_every_status_has_text(self, tmp_path, preferences, engine, resolver) -> None:
        """Aucun statut ne leve d'erreur d'affichage."""
        seen = set()
        record = EpisodeRecord(tmp_path / "a.mkv")
        record.set_filename_season("2")
        record.set_filename_episode("5")
        seen.add(record.series_status)
        record.compute_display_text(preferences, engine)
        record.set_show(OFFICE)
        seen.add(record.series_status)
        record.compute_display_text(preferences, engine)
        record.listings_complete(resolver)
        seen.add(record.series_status)
        record.compute_display_text(preferences, engine)
        record.reset_lookup()
        record.set_show(FailedShow.for_name("x"))
        seen.add(record.series_status)
        record.compute_display_text(preferences, engine)
        record.listings_failed()
        seen.add(record.series_status)
        record.compute_display_text(preferences, engine)
        assert seen == set(SeriesStatus)


class TestCachedBasename:
    """Le nom memorise n'existe qu'en GOT_LISTINGS."""

    def test_cache_filled_after_display(self, record, preferences, engine, resolver) -> None:
        record.set_show(OFFICE)
        record.listings_complete(resolver)
        assert record.cached_basename is None

        engine.renamed_basename(record, preferences)
        assert record.cached_basename == "The Office (US) [2x005] Halloween"

    def test_cache_cleared_on_reset(self, record, preferences, engine, resolver) -> None:
        record.set_show(OFFICE)
        record.listings_complete(resolver)
        engine.renamed_basename(record, preferences)

        record.reset_lookup()
        assert record.cached_basename is None

    def test_remember_outside_listings_raises(self, record) -> None:
        with pytest.raises(InvalidTransitionError):
            record.remember_basename("x", ("key",))

    def test_cache_key_mismatch_returns_none(self, record, preferences, engine, resolver) -> None:
        record.set_show(OFFICE)
        record.listings_complete(resolver)
        record.remember_basename("memo", ("a",))
        assert record.cached_basename_for(("a",)) == "memo"
        assert record.cached_basename_for(("b",)) is None
