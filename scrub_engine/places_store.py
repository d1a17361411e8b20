"""
Access to a Firefox places.sqlite database.

Threading
---------
A connection is opened for one cleanup run and used from a single thread.

Transactions
------------
Connections are opened with `isolation_level=None` so the sqlite3 module
never issues implicit BEGIN/COMMIT. All transaction boundaries are explicit
and owned by `scrub_engine.cleanup`.

The schema is owned by Firefox; this module never creates or alters tables.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Final

from scrub_engine.errors import StoreOpenError

logger = logging.getLogger(__name__)

PLACES_TABLE: Final[str] = "moz_places"
VISITS_TABLE: Final[str] = "moz_historyvisits"
INPUT_HISTORY_TABLE: Final[str] = "moz_inputhistory"


@contextmanager
def open_places_database(db_path: Path) -> Iterator[sqlite3.Connection]:
    """
    Open places.sqlite in write-ahead-log mode and close it on exit.

    Parameters
    ----------
    db_path:
        Path to an existing places.sqlite.

    Yields
    ------
    sqlite3.Connection
        Connection in manual transaction mode with `sqlite3.Row` rows.

    Raises
    ------
    StoreOpenError
        If the database cannot be opened or switched to WAL mode.
    """
    try:
        # mode=rw refuses to create a new empty database on a wrong path.
        conn = sqlite3.connect(f"{db_path.resolve().as_uri()}?mode=rw", uri=True, isolation_level=None)
    except sqlite3.Error as exc:
        raise StoreOpenError(f"Error opening database {db_path}: {exc}") from exc

    try:
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA journal_mode = WAL")
        except sqlite3.Error as exc:
            raise StoreOpenError(f"Error opening database {db_path}: {exc}") from exc
        logger.debug("Opened %s", db_path)
        yield conn
    finally:
        conn.close()
        logger.debug("Closed %s", db_path)
