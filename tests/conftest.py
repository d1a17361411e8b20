from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Iterator, Sequence

import pytest

from scrub_engine.places_store import open_places_database

PLACES_SCHEMA = """
CREATE TABLE moz_places (
    id    INTEGER PRIMARY KEY,
    url   LONGVARCHAR,
    title LONGVARCHAR
);

CREATE TABLE moz_historyvisits (
    id         INTEGER PRIMARY KEY,
    from_visit INTEGER,
    place_id   INTEGER,
    visit_date INTEGER
);

CREATE TABLE moz_inputhistory (
    place_id  INTEGER NOT NULL,
    input     LONGVARCHAR NOT NULL,
    use_count INTEGER,
    PRIMARY KEY (place_id, input)
);
"""

SAMPLE_PLACES: tuple[tuple[int, str | None, str | None], ...] = (
    (1, "http://online-casino-games.example", "Play now"),
    (2, "http://example.com", "Casino Night"),
    (3, "http://example.org/news", "Daily News"),
    (4, "HTTP://CASINO.EXAMPLE.NET", None),
    (5, None, "Weather"),
)

SAMPLE_VISITS: tuple[int, ...] = (1, 1, 2, 3, 3, 3, 4, 5)

SAMPLE_INPUTS: tuple[tuple[int, str], ...] = (
    (1, "casino"),
    (3, "news"),
    (2, "cas"),
    (4, "online casino"),
)


def create_places_database(
    db_path: Path,
    *,
    places: Sequence[tuple[int, str | None, str | None]] = SAMPLE_PLACES,
    visits: Sequence[int] = SAMPLE_VISITS,
    inputs: Sequence[tuple[int, str]] = SAMPLE_INPUTS,
) -> Path:
    """Create a minimal Firefox-shaped places.sqlite."""
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        conn.executescript(PLACES_SCHEMA)
        conn.executemany("INSERT INTO moz_places(id, url, title) VALUES(?, ?, ?)", places)
        conn.executemany(
            "INSERT INTO moz_historyvisits(place_id, visit_date) VALUES(?, 0)",
            [(place_id,) for place_id in visits],
        )
        conn.executemany(
            "INSERT INTO moz_inputhistory(place_id, input, use_count) VALUES(?, ?, 1)",
            inputs,
        )
        conn.commit()
    finally:
        conn.close()
    return db_path


def table_counts(conn: sqlite3.Connection) -> dict[str, int]:
    return {
        table: int(conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0])
        for table in ("moz_places", "moz_historyvisits", "moz_inputhistory")
    }


@pytest.fixture
def profile_dir(tmp_path: Path) -> Path:
    """A profile directory containing the sample places.sqlite."""
    directory = tmp_path / "profile"
    create_places_database(directory / "places.sqlite")
    return directory


@pytest.fixture
def places_conn(profile_dir: Path) -> Iterator[sqlite3.Connection]:
    with open_places_database(profile_dir / "places.sqlite") as conn:
        yield conn


@pytest.fixture
def words_file(tmp_path: Path) -> Path:
    path = tmp_path / "words.txt"
    path.write_text("# things to forget\n\ncasino\n", encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _reset_cli_logging() -> Iterator[None]:
    root = logging.getLogger()
    saved_levels = {
        name: logging.getLogger(name).level for name in ("", "scrub_engine", "foxscrub")
    }
    yield
    for name, level in saved_levels.items():
        logging.getLogger(name).setLevel(level)
    for handler in list(root.handlers):
        if getattr(handler, "_foxscrub_handler", False):
            root.removeHandler(handler)
            handler.close()
