from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from conftest import create_places_database, table_counts
from scrub_engine.errors import (
    DatabaseNotFoundError,
    EmptyKeywordSetError,
    ProfileNotFoundError,
    SafetyAbortError,
    WordListError,
)
from scrub_engine.options import CleanupOptions
from scrub_engine.service import scrub_history


def _never_confirm() -> bool:
    raise AssertionError("confirmation must not be requested")


def _counts(profile_dir: Path) -> dict[str, int]:
    conn = sqlite3.connect(profile_dir / "places.sqlite")
    try:
        return table_counts(conn)
    finally:
        conn.close()


def test_scrub_history_deletes_and_reports(profile_dir: Path, words_file: Path) -> None:
    lines: list[str] = []
    options = CleanupOptions(profile_dir=profile_dir, words_file=words_file, system="Linux")

    report = scrub_history(options, confirm=_never_confirm, out=lines.append)

    text = "\n".join(lines)
    assert "Dry Run Mode: false" in text
    assert "Loaded 1 words to search for." in text
    assert "Found 3 unique URL(s) to delete:" in text
    assert "  - URL: http://example.com (Title: Casino Night)" in text
    assert "  - Typed Input: online casino" in text
    assert "- Deleted 4 individual visit records (from moz_historyvisits)." in text
    assert text.endswith("History and autocomplete cleanup complete.")
    assert report.deletion_summary is not None
    assert _counts(profile_dir)["moz_places"] == 2


def test_scrub_history_dry_run_reports_without_deleting(profile_dir: Path, words_file: Path) -> None:
    lines: list[str] = []
    options = CleanupOptions(profile_dir=profile_dir, words_file=words_file, dry_run=True, system="Linux")
    before = _counts(profile_dir)

    report = scrub_history(options, confirm=_never_confirm, out=lines.append)

    assert report.deletion_summary is None
    assert lines[-1] == "Dry run complete. No changes were made."
    assert not any(line.startswith("- Deleted") for line in lines)
    assert _counts(profile_dir) == before


def test_declined_confirmation_never_runs_cleanup(
    profile_dir: Path, words_file: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    (profile_dir / ".parentlock").write_bytes(b"")

    def _run_cleanup(*_args: object, **_kwargs: object) -> None:
        raise AssertionError("run_cleanup must not be invoked")

    monkeypatch.setattr("scrub_engine.service.run_cleanup", _run_cleanup)
    options = CleanupOptions(profile_dir=profile_dir, words_file=words_file, system="Linux")

    with pytest.raises(SafetyAbortError):
        scrub_history(options, confirm=lambda: False, out=lambda _line: None)


def test_confirmed_lock_continues(profile_dir: Path, words_file: Path) -> None:
    (profile_dir / ".parentlock").write_bytes(b"")
    asked: list[bool] = []

    def _confirm() -> bool:
        asked.append(True)
        return True

    options = CleanupOptions(profile_dir=profile_dir, words_file=words_file, dry_run=True, system="Linux")
    report = scrub_history(options, confirm=_confirm, out=lambda _line: None)

    assert asked == [True]
    assert report.match_summary.places == 3


def test_assume_yes_skips_confirmation(profile_dir: Path, words_file: Path) -> None:
    (profile_dir / ".parentlock").write_bytes(b"")
    options = CleanupOptions(
        profile_dir=profile_dir, words_file=words_file, assume_yes=True, dry_run=True, system="Linux"
    )

    report = scrub_history(options, confirm=_never_confirm, out=lambda _line: None)

    assert report.match_summary.inputs == 2


def test_empty_word_list_aborts_before_opening_database(
    profile_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    words = tmp_path / "empty.txt"
    words.write_text("# nothing\n", encoding="utf-8")

    def _open(_path: Path) -> None:
        raise AssertionError("database must not be opened")

    monkeypatch.setattr("scrub_engine.service.open_places_database", _open)
    options = CleanupOptions(profile_dir=profile_dir, words_file=words, system="Linux")

    with pytest.raises(EmptyKeywordSetError) as excinfo:
        scrub_history(options, confirm=_never_confirm, out=lambda _line: None)
    assert "Nothing to do" in str(excinfo.value)


def test_missing_words_file_is_reported(profile_dir: Path, tmp_path: Path) -> None:
    options = CleanupOptions(profile_dir=profile_dir, words_file=tmp_path / "missing.txt", system="Linux")

    with pytest.raises(WordListError):
        scrub_history(options, confirm=_never_confirm, out=lambda _line: None)


def test_missing_database_is_reported(tmp_path: Path, words_file: Path) -> None:
    empty_profile = tmp_path / "empty_profile"
    empty_profile.mkdir()
    options = CleanupOptions(profile_dir=empty_profile, words_file=words_file, system="Linux")

    with pytest.raises(DatabaseNotFoundError):
        scrub_history(options, confirm=_never_confirm, out=lambda _line: None)


def test_default_profile_is_resolved_from_registry(
    tmp_path: Path, profile_dir: Path, words_file: Path
) -> None:
    data_root = profile_dir.parent
    (data_root / "profiles.ini").write_text(
        f"[Profile0]\nIsRelative=1\nPath={profile_dir.name}\n", encoding="utf-8"
    )
    lines: list[str] = []
    options = CleanupOptions(words_file=words_file, dry_run=True, data_root=data_root, system="Linux")

    scrub_history(options, confirm=_never_confirm, out=lines.append)

    assert f"Profile Path: {profile_dir.resolve()}" in lines[0]


def test_unresolvable_default_profile_is_reported(tmp_path: Path, words_file: Path) -> None:
    options = CleanupOptions(words_file=words_file, data_root=tmp_path / "no-firefox", system="Linux")

    with pytest.raises(ProfileNotFoundError):
        scrub_history(options, confirm=_never_confirm, out=lambda _line: None)


def test_max_items_limits_listing_not_counts(profile_dir: Path, words_file: Path) -> None:
    lines: list[str] = []
    options = CleanupOptions(
        profile_dir=profile_dir, words_file=words_file, dry_run=True, max_items=1, system="Linux"
    )

    scrub_history(options, confirm=_never_confirm, out=lines.append)

    text = "\n".join(lines)
    assert "Found 3 unique URL(s) to delete:" in text
    assert "  ... (2 more not shown)" in text
    assert "  ... (1 more not shown)" in text


def test_input_only_run_reports_only_autocomplete_deletions(tmp_path: Path) -> None:
    profile = tmp_path / "profile"
    create_places_database(
        profile / "places.sqlite",
        places=[(1, "http://example.org", "Example")],
        visits=[1],
        inputs=[(1, "secret recipe"), (1, "example")],
    )
    words = tmp_path / "words.txt"
    words.write_text("secret\n", encoding="utf-8")
    lines: list[str] = []
    options = CleanupOptions(profile_dir=profile, words_file=words, system="Linux")

    scrub_history(options, confirm=_never_confirm, out=lines.append)

    deleted = [line for line in lines if line.startswith("- Deleted")]
    assert deleted == ["- Deleted 1 autocomplete entries (from moz_inputhistory)."]
    assert _counts(profile) == {"moz_places": 1, "moz_historyvisits": 1, "moz_inputhistory": 1}
