"""
Transactional deletion of matched history.

Deletion order
--------------
moz_historyvisits rows reference moz_places by place_id. Visits are deleted
before their places so no visit is ever left pointing at a missing place.
moz_inputhistory is independent and is deleted by re-evaluating the same
keyword predicate used to find it.

Atomicity
---------
All deletions run inside one transaction. Any failure rolls the transaction
back and leaves the database exactly as it was before `begin()`.

State machine::

    NOT_STARTED -> BEGAN -> (VISITS_DELETED -> PLACES_DELETED)? -> (INPUT_DELETED)? -> COMMITTED

ROLLED_BACK is reachable from every non-terminal state.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from enum import Enum
from typing import Final, Iterator, Sequence

from scrub_engine.errors import DeletionError, TransactionError
from scrub_engine.match import KeywordFilter, MatchSet
from scrub_engine.places_store import INPUT_HISTORY_TABLE, PLACES_TABLE, VISITS_TABLE

logger = logging.getLogger(__name__)

# Stays well below SQLITE_MAX_VARIABLE_NUMBER on old SQLite builds (999).
DELETE_CHUNK_SIZE: Final[int] = 500


class TransactionState(str, Enum):
    """Lifecycle of a cleanup transaction."""

    NOT_STARTED = "not_started"
    BEGAN = "began"
    VISITS_DELETED = "visits_deleted"
    PLACES_DELETED = "places_deleted"
    INPUT_DELETED = "input_deleted"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


_TERMINAL_STATES: Final[frozenset[TransactionState]] = frozenset(
    {TransactionState.COMMITTED, TransactionState.ROLLED_BACK}
)


@dataclass(frozen=True, slots=True)
class DeletionSummary:
    """
    Rows deleted by a committed cleanup.

    Attributes
    ----------
    visits:
        moz_historyvisits rows deleted.
    places:
        moz_places rows deleted.
    inputs:
        moz_inputhistory rows deleted.
    """

    visits: int = 0
    places: int = 0
    inputs: int = 0


def _chunks(values: Sequence[int], size: int) -> Iterator[Sequence[int]]:
    for start in range(0, len(values), size):
        yield values[start : start + size]


class CleanupTransaction:
    """
    One delete transaction on a places database.

    Parameters
    ----------
    conn:
        Connection opened in manual transaction mode (`isolation_level=None`).
    chunk_size:
        Maximum number of place ids bound into a single DELETE statement.
    """

    def __init__(self, conn: sqlite3.Connection, *, chunk_size: int = DELETE_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive.")
        self._conn = conn
        self._chunk_size = chunk_size
        self._state = TransactionState.NOT_STARTED
        self._visits_deleted = 0
        self._places_deleted = 0
        self._inputs_deleted = 0

    @property
    def state(self) -> TransactionState:
        return self._state

    def summary(self) -> DeletionSummary:
        return DeletionSummary(
            visits=self._visits_deleted,
            places=self._places_deleted,
            inputs=self._inputs_deleted,
        )

    def begin(self) -> None:
        """
        Start the transaction.

        Raises
        ------
        TransactionError
            If the transaction was already started or BEGIN fails.
        """
        self._require_state(TransactionState.NOT_STARTED, action="begin")
        try:
            # IMMEDIATE takes the write lock now instead of at the first DELETE.
            self._conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as exc:
            raise TransactionError(f"Could not begin transaction: {exc}", operation="begin") from exc
        self._state = TransactionState.BEGAN

    def delete_places(self, place_ids: Sequence[int]) -> None:
        """
        Delete the visits of `place_ids`, then the places themselves.

        Raises
        ------
        DeletionError
            If a delete statement fails. The caller must roll back.
        """
        self._require_state(TransactionState.BEGAN, action="delete places")
        ids = list(place_ids)

        self._visits_deleted += self._delete_by_ids(VISITS_TABLE, "place_id", ids)
        self._state = TransactionState.VISITS_DELETED
        logger.info("Deleted %d visit record(s) from %s", self._visits_deleted, VISITS_TABLE)

        self._places_deleted += self._delete_by_ids(PLACES_TABLE, "id", ids)
        self._state = TransactionState.PLACES_DELETED
        logger.info("Deleted %d place(s) from %s", self._places_deleted, PLACES_TABLE)

    def delete_input_history(self, keyword_filter: KeywordFilter) -> None:
        """
        Delete input history rows matching the keyword filter.

        One DELETE runs per keyword batch, all inside this transaction.

        Raises
        ------
        DeletionError
            If a delete statement fails. The caller must roll back.
        """
        self._require_state(
            TransactionState.BEGAN,
            TransactionState.PLACES_DELETED,
            action="delete input history",
        )
        for predicate in keyword_filter.input_history:
            sql = f"DELETE FROM {INPUT_HISTORY_TABLE} WHERE {predicate.sql}"
            try:
                cur = self._conn.execute(sql, predicate.params)
            except sqlite3.Error as exc:
                raise DeletionError(
                    f"Failed to delete from {INPUT_HISTORY_TABLE}: {exc}",
                    table=INPUT_HISTORY_TABLE,
                    operation="delete",
                ) from exc
            self._inputs_deleted += max(cur.rowcount, 0)
        self._state = TransactionState.INPUT_DELETED
        logger.info("Deleted %d autocomplete entries from %s", self._inputs_deleted, INPUT_HISTORY_TABLE)

    def commit(self) -> None:
        """
        Commit all deletions.

        Raises
        ------
        TransactionError
            If the transaction is not open or COMMIT fails.
        """
        if self._state in _TERMINAL_STATES or self._state is TransactionState.NOT_STARTED:
            raise TransactionError(f"Cannot commit from state {self._state.value}.", operation="commit")
        try:
            self._conn.execute("COMMIT")
        except sqlite3.Error as exc:
            raise TransactionError(f"Could not commit transaction: {exc}", operation="commit") from exc
        self._state = TransactionState.COMMITTED

    def rollback(self) -> None:
        """
        Roll back the transaction if one is open. A no-op after commit.
        """
        if self._state is TransactionState.COMMITTED:
            return
        if self._conn.in_transaction:
            try:
                self._conn.execute("ROLLBACK")
            except sqlite3.Error as exc:
                raise TransactionError(f"Could not roll back transaction: {exc}", operation="rollback") from exc
        if self._state is not TransactionState.NOT_STARTED:
            logger.warning("Cleanup transaction rolled back from state %s", self._state.value)
            self._state = TransactionState.ROLLED_BACK

    def _delete_by_ids(self, table: str, column: str, ids: Sequence[int]) -> int:
        deleted = 0
        for chunk in _chunks(ids, self._chunk_size):
            placeholders = ",".join("?" * len(chunk))
            sql = f"DELETE FROM {table} WHERE {column} IN ({placeholders})"
            try:
                cur = self._conn.execute(sql, tuple(chunk))
            except sqlite3.Error as exc:
                raise DeletionError(
                    f"Failed to delete from {table}: {exc}",
                    table=table,
                    operation="delete",
                ) from exc
            deleted += max(cur.rowcount, 0)
        return deleted

    def _require_state(self, *allowed: TransactionState, action: str) -> None:
        if self._state not in allowed:
            raise TransactionError(f"Cannot {action} in state {self._state.value}.", operation=action)


def apply_cleanup(
    conn: sqlite3.Connection,
    match_set: MatchSet,
    *,
    chunk_size: int = DELETE_CHUNK_SIZE,
) -> DeletionSummary:
    """
    Delete everything in `match_set` atomically.

    Parameters
    ----------
    conn:
        Connection opened in manual transaction mode.
    match_set:
        Result of `scrub_engine.match.find_matches`.
    chunk_size:
        Maximum number of ids bound per DELETE statement.

    Returns
    -------
    DeletionSummary
        Rows deleted per table. All zeros when `match_set` is empty, in which
        case no transaction is started.

    Raises
    ------
    TransactionError
        If the transaction cannot begin or commit.
    DeletionError
        If a delete fails. The transaction has been rolled back.
    """
    if match_set.is_empty:
        return DeletionSummary()

    tx = CleanupTransaction(conn, chunk_size=chunk_size)
    tx.begin()
    try:
        if match_set.places:
            tx.delete_places(match_set.place_ids)
        if match_set.inputs:
            tx.delete_input_history(KeywordFilter.from_keywords(match_set.keywords))
        tx.commit()
    except BaseException:
        tx.rollback()
        raise
    return tx.summary()
