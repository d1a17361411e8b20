"""
Keyword matching against the places database.

A row matches when any keyword is contained in the matched column(s),
compared case-insensitively. Containment is expressed with SQLite `LIKE`
patterns of the form `%keyword%`. LIKE wildcards inside keywords are escaped
so a keyword always matches literally.

This module only reads. Deletion lives in `scrub_engine.cleanup`.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from typing import Final, Sequence

from scrub_engine.errors import EmptyKeywordSetError, QueryError
from scrub_engine.places_store import INPUT_HISTORY_TABLE, PLACES_TABLE

logger = logging.getLogger(__name__)

LIKE_ESCAPE = "\\"

# Two LIKE terms per keyword keep a batch far below SQLite's expression depth
# limit (1000) and its default parameter limit on old builds (999).
KEYWORD_BATCH_SIZE: Final[int] = 200


def like_contains_pattern(keyword: str) -> str:
    """Return a LIKE pattern matching any text that contains `keyword` literally."""
    escaped = (
        keyword.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


@dataclass(frozen=True, slots=True)
class Predicate:
    """A SQL boolean expression with its positional parameters."""

    sql: str
    params: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class KeywordFilter:
    """
    Disjunctive filters built from a keyword set.

    SQLite caps expression depth, so a long keyword set is split into
    batches of at most `KEYWORD_BATCH_SIZE` keywords. A row matches the
    filter when it matches any batch.

    Attributes
    ----------
    places:
        One predicate per batch, matching moz_places rows whose url or title
        contains any keyword of the batch.
    input_history:
        One predicate per batch, matching moz_inputhistory rows whose input
        contains any keyword of the batch.
    """

    places: tuple[Predicate, ...]
    input_history: tuple[Predicate, ...]

    @classmethod
    def from_keywords(
        cls,
        keywords: Sequence[str],
        *,
        batch_size: int = KEYWORD_BATCH_SIZE,
    ) -> "KeywordFilter":
        """
        Build both filters.

        Parameters
        ----------
        keywords:
            Keywords to match.
        batch_size:
            Maximum number of keywords per predicate.

        Raises
        ------
        EmptyKeywordSetError
            If `keywords` is empty.
        ValueError
            If `batch_size` is not positive.
        """
        if not keywords:
            raise EmptyKeywordSetError("No keywords to search for.")
        if batch_size <= 0:
            raise ValueError("batch_size must be positive.")

        places: list[Predicate] = []
        inputs: list[Predicate] = []
        for start in range(0, len(keywords), batch_size):
            batch = keywords[start : start + batch_size]
            patterns = [like_contains_pattern(keyword) for keyword in batch]
            places.append(
                Predicate(
                    sql=" OR ".join("url LIKE ? ESCAPE '\\' OR title LIKE ? ESCAPE '\\'" for _ in patterns),
                    params=tuple(p for pattern in patterns for p in (pattern, pattern)),
                )
            )
            inputs.append(
                Predicate(
                    sql=" OR ".join("input LIKE ? ESCAPE '\\'" for _ in patterns),
                    params=tuple(patterns),
                )
            )
        return cls(places=tuple(places), input_history=tuple(inputs))


@dataclass(frozen=True, slots=True)
class MatchedPlace:
    """A moz_places row selected for deletion. NULL columns are empty strings."""

    place_id: int
    url: str
    title: str


@dataclass(frozen=True, slots=True)
class MatchSummary:
    """Counts of matched rows."""

    places: int
    inputs: int


@dataclass(frozen=True, slots=True)
class MatchSet:
    """
    Result of one search pass.

    Attributes
    ----------
    keywords:
        Keywords the search was run with.
    places:
        Matched moz_places rows in query order.
    inputs:
        Matched moz_inputhistory input values in query order.
    """

    keywords: tuple[str, ...]
    places: tuple[MatchedPlace, ...]
    inputs: tuple[str, ...]

    @property
    def place_ids(self) -> tuple[int, ...]:
        return tuple(place.place_id for place in self.places)

    @property
    def is_empty(self) -> bool:
        return not self.places and not self.inputs

    def summary(self) -> MatchSummary:
        """
        Count the matched rows.

        Returns
        -------
        MatchSummary
            Number of matched places and autocomplete inputs.
        """
        return MatchSummary(places=len(self.places), inputs=len(self.inputs))


def find_matching_places(conn: sqlite3.Connection, keyword_filter: KeywordFilter) -> tuple[MatchedPlace, ...]:
    """
    Select moz_places rows matching the places filter.

    Each keyword batch is queried separately. A row matched by several
    batches is reported once, and rows are ordered by id.

    Raises
    ------
    QueryError
        If a query fails.
    """
    matched: dict[int, MatchedPlace] = {}
    for predicate in keyword_filter.places:
        sql = f"SELECT id, url, title FROM {PLACES_TABLE} WHERE {predicate.sql}"
        try:
            rows = conn.execute(sql, predicate.params).fetchall()
        except sqlite3.Error as exc:
            raise QueryError(
                f"Error querying {PLACES_TABLE} for entries to delete: {exc}",
                table=PLACES_TABLE,
                operation="select",
            ) from exc
        for row in rows:
            place_id = int(row[0])
            matched.setdefault(place_id, MatchedPlace(place_id=place_id, url=row[1] or "", title=row[2] or ""))

    return tuple(matched[place_id] for place_id in sorted(matched))


def find_matching_inputs(conn: sqlite3.Connection, keyword_filter: KeywordFilter) -> tuple[str, ...]:
    """
    Select moz_inputhistory input values matching the input filter.

    Rows matched by several keyword batches are reported once, in rowid
    order.

    Raises
    ------
    QueryError
        If a query fails.
    """
    matched: dict[int, str] = {}
    for predicate in keyword_filter.input_history:
        sql = f"SELECT rowid, input FROM {INPUT_HISTORY_TABLE} WHERE {predicate.sql}"
        try:
            rows = conn.execute(sql, predicate.params).fetchall()
        except sqlite3.Error as exc:
            raise QueryError(
                f"Error querying {INPUT_HISTORY_TABLE} for autocomplete entries: {exc}",
                table=INPUT_HISTORY_TABLE,
                operation="select",
            ) from exc
        for row in rows:
            matched.setdefault(int(row[0]), row[1] or "")

    return tuple(matched[rowid] for rowid in sorted(matched))



def find_matches(conn: sqlite3.Connection, keywords: Sequence[str]) -> MatchSet:
    """
    Find every places and input history row matching any keyword.

    Parameters
    ----------
    conn:
        Open places database connection.
    keywords:
        Non-empty keyword set.

    Returns
    -------
    MatchSet
        Matched rows. Either collection may be empty.

    Raises
    ------
    EmptyKeywordSetError
        If `keywords` is empty.
    QueryError
        If either query fails.
    """
    keyword_filter = KeywordFilter.from_keywords(keywords)
    places = find_matching_places(conn, keyword_filter)
    inputs = find_matching_inputs(conn, keyword_filter)
    logger.info("Matched %d place(s) and %d autocomplete input(s)", len(places), len(inputs))
    return MatchSet(keywords=tuple(keywords), places=places, inputs=inputs)
