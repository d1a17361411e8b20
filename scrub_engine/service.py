"""
Cleanup orchestration for foxscrub.

This module coordinates:
- profile resolution (explicit directory or profiles.ini default)
- database presence check
- word list loading
- the running-instance safety gate
- an optional pre-cleanup snapshot
- matching and, outside dry-run mode, transactional deletion

Safety posture
--------------
- Dry-run mode issues no mutating statement.
- The database connection is opened only after every precondition passed and
  is closed on every exit path.
- A failed deletion leaves the database unchanged.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Callable, Sequence

from scrub_engine.cleanup import DeletionSummary, apply_cleanup
from scrub_engine.errors import EmptyKeywordSetError
from scrub_engine.match import MatchSet, MatchSummary, find_matches
from scrub_engine.options import CleanupOptions
from scrub_engine.paths_and_safety import (
    check_running_instance,
    places_database_path,
    validate_profile_directory,
)
from scrub_engine.places_store import open_places_database
from scrub_engine.profile_registry import resolve_default_profile
from scrub_engine.render import (
    render_completion,
    render_deletion_summary,
    render_match_report,
    render_run_header,
)
from scrub_engine.snapshot import SnapshotResult, write_database_snapshot
from scrub_engine.word_list import load_keywords

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CleanupReport:
    """
    Outcome of one cleanup run.

    Attributes
    ----------
    match_set:
        Rows matched by the keyword search.
    deletion_summary:
        Rows deleted, or None when nothing was deleted because of dry-run
        mode or an empty match set.
    dry_run:
        Whether the run was a dry run.
    snapshot:
        Snapshot written before deleting, if one was requested.
    """

    match_set: MatchSet
    deletion_summary: DeletionSummary | None
    dry_run: bool
    snapshot: SnapshotResult | None = None

    @property
    def match_summary(self) -> MatchSummary:
        return self.match_set.summary()


def run_cleanup(
    conn: sqlite3.Connection,
    keywords: Sequence[str],
    *,
    dry_run: bool,
) -> CleanupReport:
    """
    Find history matching `keywords` and delete it unless `dry_run`.

    Parameters
    ----------
    conn:
        Open places database connection in manual transaction mode.
    keywords:
        Non-empty keyword set.
    dry_run:
        If True, only read.

    Returns
    -------
    CleanupReport
        Matches and, when rows were deleted, the deletion counts.

    Raises
    ------
    EmptyKeywordSetError
        If `keywords` is empty.
    QueryError
        If a read query fails.
    TransactionError, DeletionError
        If deletion fails. Nothing has been deleted in that case.
    """
    match_set = find_matches(conn, keywords)

    if dry_run or match_set.is_empty:
        return CleanupReport(match_set=match_set, deletion_summary=None, dry_run=dry_run)

    summary = apply_cleanup(conn, match_set)
    return CleanupReport(match_set=match_set, deletion_summary=summary, dry_run=dry_run)


def resolve_profile_directory(options: CleanupOptions) -> Path:
    """
    Return the validated profile directory for a run.

    Raises
    ------
    ProfileNotFoundError
        If no profile can be determined or the directory does not exist.
    ProfileRegistryError
        If profiles.ini cannot be read.
    """
    if options.profile_dir is not None:
        return validate_profile_directory(options.profile_dir)
    return validate_profile_directory(resolve_default_profile(options.data_root))


def scrub_history(
    options: CleanupOptions,
    *,
    confirm: Callable[[], bool],
    out: Callable[[str], None] = print,
    snapshot_time: datetime | None = None,
) -> CleanupReport:
    """
    Run the complete cleanup workflow.

    Parameters
    ----------
    options:
        Resolved run options.
    confirm:
        Asked whether to continue when Firefox appears to be running. Not
        called when `options.assume_yes` is set.
    out:
        Sink for user-facing text.
    snapshot_time:
        Instant used in the snapshot file name. Defaults to the current time.

    Returns
    -------
    CleanupReport
        Outcome of the run.

    Raises
    ------
    ScrubError
        Any domain failure. See `scrub_engine.errors`.
    """
    if options.max_items < 0:
        raise ValueError("max_items must be non-negative.")

    profile_dir = resolve_profile_directory(options)
    db_path = places_database_path(profile_dir)

    out(
        render_run_header(
            profile_dir=profile_dir,
            db_path=db_path,
            words_file=options.words_file,
            dry_run=options.dry_run,
        )
    )

    keywords = load_keywords(options.words_file)
    if not keywords:
        raise EmptyKeywordSetError(f"No words found in '{options.words_file}'. Nothing to do.")
    out(f"Loaded {len(keywords)} words to search for.")

    check_running_instance(
        profile_dir,
        confirm=(lambda: True) if options.assume_yes else confirm,
        system=options.system,
    )

    with open_places_database(db_path) as conn:
        snapshot: SnapshotResult | None = None
        if options.snapshot_dir is not None and not options.dry_run:
            snapshot = write_database_snapshot(conn, snapshot_dir=options.snapshot_dir, taken_at=snapshot_time)
            out(f"Snapshot written: {snapshot.snapshot_path}")

        out("")
        out("Searching for matching history entries...")
        report = run_cleanup(conn, keywords, dry_run=options.dry_run)

    out(render_match_report(report.match_set, max_items=options.max_items))

    if report.deletion_summary is not None:
        out("")
        out("Deleting entries...")
        out(render_deletion_summary(report.deletion_summary, report.match_summary))

    out("")
    out(render_completion(dry_run=options.dry_run))

    logger.info(
        "Cleanup finished (dry_run=%s, places=%d, inputs=%d)",
        options.dry_run,
        report.match_summary.places,
        report.match_summary.inputs,
    )
    if snapshot is not None:
        return replace(report, snapshot=snapshot)
    return report
