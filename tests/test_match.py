from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from conftest import create_places_database
from scrub_engine.errors import EmptyKeywordSetError, QueryError
from scrub_engine.match import KeywordFilter, find_matches, like_contains_pattern
from scrub_engine.places_store import open_places_database


def test_like_contains_pattern_escapes_wildcards() -> None:
    assert like_contains_pattern("casino") == "%casino%"
    assert like_contains_pattern("100%") == "%100\\%%"
    assert like_contains_pattern("a_b") == "%a\\_b%"
    assert like_contains_pattern("c\\d") == "%c\\\\d%"


def test_keyword_filter_builds_one_clause_group_per_keyword() -> None:
    keyword_filter = KeywordFilter.from_keywords(["casino", "poker"])

    (places,) = keyword_filter.places
    (inputs,) = keyword_filter.input_history
    assert places.sql.count("url LIKE ?") == 2
    assert places.sql.count("title LIKE ?") == 2
    assert places.params == ("%casino%", "%casino%", "%poker%", "%poker%")
    assert inputs.params == ("%casino%", "%poker%")


def test_keyword_filter_splits_long_keyword_sets_into_batches() -> None:
    keywords = [f"w{i}" for i in range(450)]

    keyword_filter = KeywordFilter.from_keywords(keywords)

    assert len(keyword_filter.places) == 3
    assert [len(p.params) for p in keyword_filter.input_history] == [200, 200, 50]
    assert keyword_filter.input_history[2].params[-1] == "%w449%"


def test_keyword_filter_rejects_non_positive_batch_size() -> None:
    with pytest.raises(ValueError):
        KeywordFilter.from_keywords(["casino"], batch_size=0)



def test_keyword_filter_rejects_empty_keywords() -> None:
    with pytest.raises(EmptyKeywordSetError):
        KeywordFilter.from_keywords([])


def test_find_matches_matches_url_and_title(places_conn: sqlite3.Connection) -> None:
    match_set = find_matches(places_conn, ["casino"])

    assert sorted(match_set.place_ids) == [1, 2, 4]
    urls = {place.url for place in match_set.places}
    assert "http://online-casino-games.example" in urls
    assert "http://example.com" in urls  # matched through its title
    assert "http://example.org/news" not in urls


def test_find_matches_is_case_insensitive(places_conn: sqlite3.Connection) -> None:
    match_set = find_matches(places_conn, ["Casino"])

    assert 4 in match_set.place_ids  # HTTP://CASINO.EXAMPLE.NET


def test_find_matches_reports_null_columns_as_empty_strings(places_conn: sqlite3.Connection) -> None:
    match_set = find_matches(places_conn, ["casino.example"])
    assert [(p.url, p.title) for p in match_set.places] == [("HTTP://CASINO.EXAMPLE.NET", "")]

    match_set = find_matches(places_conn, ["weather"])
    assert [(p.url, p.title) for p in match_set.places] == [("", "Weather")]


def test_find_matches_collects_input_history(places_conn: sqlite3.Connection) -> None:
    match_set = find_matches(places_conn, ["casino"])

    assert sorted(match_set.inputs) == ["casino", "online casino"]
    assert match_set.summary().places == 3
    assert match_set.summary().inputs == 2


def test_find_matches_with_no_hits_is_empty(places_conn: sqlite3.Connection) -> None:
    match_set = find_matches(places_conn, ["nothing-like-this"])

    assert match_set.is_empty
    assert match_set.place_ids == ()


def test_duplicate_keywords_do_not_duplicate_matches(places_conn: sqlite3.Connection) -> None:
    match_set = find_matches(places_conn, ["casino", "casino", "CASINO"])

    assert sorted(match_set.place_ids) == [1, 2, 4]


def test_wildcard_characters_match_literally(tmp_path: Path) -> None:
    db_path = create_places_database(
        tmp_path / "places.sqlite",
        places=[
            (1, "http://a.example", "100% pure"),
            (2, "http://b.example", "1000 things"),
            (3, "http://c.example/a_b", None),
            (4, "http://c.example/axb", None),
        ],
        visits=[],
        inputs=[],
    )
    with open_places_database(db_path) as conn:
        assert find_matches(conn, ["100%"]).place_ids == (1,)
        assert find_matches(conn, ["a_b"]).place_ids == (3,)


def test_find_matches_wraps_query_failures(places_conn: sqlite3.Connection) -> None:
    places_conn.execute("DROP TABLE moz_inputhistory")

    with pytest.raises(QueryError) as excinfo:
        find_matches(places_conn, ["casino"])
    assert excinfo.value.table == "moz_inputhistory"
    assert "moz_inputhistory" in str(excinfo.value)


def test_find_matches_handles_very_long_keyword_lists(places_conn: sqlite3.Connection) -> None:
    keywords = [f"unused-word-{i}" for i in range(1200)] + ["casino"]

    match_set = find_matches(places_conn, keywords)

    assert match_set.place_ids == (1, 2, 4)
    assert match_set.inputs == ("casino", "online casino")


def test_rows_matched_by_several_batches_are_reported_once(places_conn: sqlite3.Connection) -> None:
    keywords = ["casino", *[f"unused-word-{i}" for i in range(300)], "online"]

    match_set = find_matches(places_conn, keywords)

    assert match_set.place_ids == (1, 2, 4)
    assert match_set.inputs == ("casino", "online casino")
