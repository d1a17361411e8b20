"""
Rendering for cleanup output.

All functions return deterministic plain text. Printing is left to callers.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from scrub_engine.cleanup import DeletionSummary
from scrub_engine.match import MatchSet, MatchSummary
from scrub_engine.places_store import INPUT_HISTORY_TABLE, PLACES_TABLE, VISITS_TABLE

_RULE = "---------------------------"


def render_run_header(
    *,
    profile_dir: Path,
    db_path: Path,
    words_file: Path,
    dry_run: bool,
) -> str:
    """Render the block describing what a run will operate on."""
    lines = [
        "Firefox History Cleaner",
        _RULE,
        f"Profile Path: {profile_dir}",
        f"Database: {db_path}",
        f"Words File: {words_file}",
        f"Dry Run Mode: {str(dry_run).lower()}",
        _RULE,
    ]
    return "\n".join(lines)


def _limited(items: Sequence[str], max_items: int) -> list[str]:
    shown = list(items[:max_items]) if max_items else []
    if max_items < len(items):
        shown.append(f"  ... ({len(items) - max_items} more not shown)")
    return shown


def render_match_report(match_set: MatchSet, *, max_items: int) -> str:
    """
    Render matched rows.

    Parameters
    ----------
    match_set:
        Matches to render.
    max_items:
        Maximum number of rows listed per table. Counts always reflect the
        full match set. Must be non-negative.

    Raises
    ------
    ValueError
        If max_items is negative.
    """
    if max_items < 0:
        raise ValueError("max_items must be non-negative.")

    if match_set.is_empty:
        return "No matching history or autocomplete entries found. Nothing to do."

    lines: list[str] = []
    if match_set.places:
        lines.append(f"Found {len(match_set.places)} unique URL(s) to delete:")
        lines.extend(
            _limited(
                [f"  - URL: {place.url} (Title: {place.title})" for place in match_set.places],
                max_items,
            )
        )
    if match_set.inputs:
        lines.append(f"Found {len(match_set.inputs)} autocomplete suggestion(s) to delete:")
        lines.extend(_limited([f"  - Typed Input: {value}" for value in match_set.inputs], max_items))
    return "\n".join(lines)


def render_deletion_summary(summary: DeletionSummary, match_summary: MatchSummary) -> str:
    """
    Render per-table deletion counts.

    Parameters
    ----------
    summary:
        Rows deleted by the committed cleanup.
    match_summary:
        Counts of matched rows. Tables with no matched rows are left out.

    Returns
    -------
    str
        One line per table that was cleaned.
    """
    lines: list[str] = []
    if match_summary.places:
        lines.append(f"- Deleted {summary.visits} individual visit records (from {VISITS_TABLE}).")
        lines.append(f"- Deleted {summary.places} unique URL entries (from {PLACES_TABLE}).")
    if match_summary.inputs:
        lines.append(f"- Deleted {summary.inputs} autocomplete entries (from {INPUT_HISTORY_TABLE}).")
    return "\n".join(lines)


def render_completion(*, dry_run: bool) -> str:
    """
    Render the closing line of a run.

    Parameters
    ----------
    dry_run:
        Whether the run was a dry run.

    Returns
    -------
    str
        Completion message.
    """
    if dry_run:
        return "Dry run complete. No changes were made."
    return "History and autocomplete cleanup complete."
