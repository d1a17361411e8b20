"""Resolved options for a cleanup run."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_WORDS_FILE = Path("words.txt")
DEFAULT_MAX_ITEMS = 1000


@dataclass(frozen=True, slots=True)
class CleanupOptions:
    """
    Inputs of one cleanup run, as resolved by the CLI.

    Attributes
    ----------
    profile_dir:
        Explicit profile directory. If None, the default profile is resolved
        from profiles.ini under `data_root`.
    words_file:
        Word list path.
    dry_run:
        Report matches without modifying the database.
    assume_yes:
        Continue without prompting when Firefox appears to be running.
    max_items:
        Maximum number of matched rows listed per table. Counts are always complete.
    snapshot_dir:
        If set, write a compressed copy of the database here before deleting.
    data_root:
        Override of the Firefox data root (profiles.ini location).
    system:
        Override of the platform name used for the lock file name.
    """

    profile_dir: Path | None = None
    words_file: Path = DEFAULT_WORDS_FILE
    dry_run: bool = False
    assume_yes: bool = False
    max_items: int = DEFAULT_MAX_ITEMS
    snapshot_dir: Path | None = None
    data_root: Path | None = None
    system: str | None = None
