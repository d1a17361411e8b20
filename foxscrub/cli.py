"""
Command-line interface for foxscrub.

Notes
-----
The CLI is intentionally thin. It parses arguments, configures logging, asks
for confirmation when needed, and maps engine errors to exit codes. All
cleanup logic lives in `scrub_engine`.

Safety posture (clean command)
------------------------------
- --dry-run: report matches, never modify the database.
- If Firefox appears to be running, the operator must answer exactly "y".
- --snapshot-dir: write a compressed database copy before deleting.
"""

from __future__ import annotations

import argparse
import os
import sys
from enum import IntEnum
from pathlib import Path
from typing import TextIO

from foxscrub.logging_setup import setup_logging
from scrub_engine.errors import (
    ConfigError,
    NotFoundError,
    ProfileRegistryError,
    SafetyAbortError,
    ScrubError,
    WordListError,
)
from scrub_engine.options import DEFAULT_MAX_ITEMS, DEFAULT_WORDS_FILE, CleanupOptions
from scrub_engine.paths_and_safety import firefox_data_root
from scrub_engine.profile_registry import (
    default_profile_from_registry,
    list_registry_profiles,
    read_profile_registry,
)
from scrub_engine.service import scrub_history

WORDS_ENV_VAR = "FOXSCRUB_WORDS"
LOG_LEVEL_ENV_VAR = "FOXSCRUB_LOG_LEVEL"


class ExitCode(IntEnum):
    """Process exit codes."""

    OK = 0
    SAFETY_ABORT = 1
    CONFIG_ERROR = 2
    OPERATION_ERROR = 3


def confirm_from_stream(prompt: str, stream: TextIO, *, out: TextIO | None = None) -> bool:
    """
    Ask a yes/no question and read one line of input.

    Only an exact "y" (surrounding whitespace ignored) confirms. "yes", "Y"
    and end of input all decline.
    """
    target = out if out is not None else sys.stdout
    print(prompt, file=target, flush=True)
    line = stream.readline()
    return line.strip() == "y"


def build_parser() -> argparse.ArgumentParser:
    """
    Build and return the top-level argument parser.

    Returns
    -------
    argparse.ArgumentParser
        Configured parser.
    """
    parser = argparse.ArgumentParser(
        prog="foxscrub",
        description="Remove Firefox history and autocomplete entries matching a word list",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get(LOG_LEVEL_ENV_VAR, "WARNING"),
        help=f"Diagnostic log level (default: WARNING, env {LOG_LEVEL_ENV_VAR}).",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Also write diagnostics to this file.")
    parser.add_argument(
        "--data-root",
        type=Path,
        default=None,
        help=argparse.SUPPRESS,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    clean_p = sub.add_parser(
        "clean",
        help="Delete history matching the word list (use --dry-run to preview)",
    )
    clean_p.add_argument(
        "--profile",
        type=Path,
        default=None,
        help="Path to the Firefox profile directory. Defaults to the profile named in profiles.ini.",
    )
    clean_p.add_argument(
        "--words",
        type=Path,
        default=Path(os.environ.get(WORDS_ENV_VAR, str(DEFAULT_WORDS_FILE))),
        help=f"File with words to delete, one per line (default: words.txt, env {WORDS_ENV_VAR}).",
    )
    clean_p.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be deleted without deleting it.",
    )
    clean_p.add_argument(
        "--yes",
        action="store_true",
        help="Continue without asking when Firefox appears to be running.",
    )
    clean_p.add_argument(
        "--max-items",
        type=int,
        default=DEFAULT_MAX_ITEMS,
        help=f"Maximum number of matched entries to list per table (default: {DEFAULT_MAX_ITEMS}).",
    )
    clean_p.add_argument(
        "--snapshot-dir",
        type=Path,
        default=None,
        help="Write a compressed copy of places.sqlite here before deleting.",
    )

    sub.add_parser("profiles", help="List profiles from profiles.ini and show the default")

    return parser


def _exit_code_for(exc: ScrubError) -> ExitCode:
    if isinstance(exc, SafetyAbortError):
        return ExitCode.SAFETY_ABORT
    if isinstance(exc, (NotFoundError, ConfigError, WordListError, ProfileRegistryError)):
        return ExitCode.CONFIG_ERROR
    return ExitCode.OPERATION_ERROR


def _run_clean(args: argparse.Namespace) -> int:
    if args.max_items < 0:
        print("ERROR: --max-items must be non-negative.")
        return ExitCode.CONFIG_ERROR

    options = CleanupOptions(
        profile_dir=args.profile,
        words_file=args.words,
        dry_run=args.dry_run,
        assume_yes=args.yes,
        max_items=args.max_items,
        snapshot_dir=args.snapshot_dir,
        data_root=args.data_root,
    )

    def _confirm() -> bool:
        print(
            "ERROR: Firefox appears to be running. Please close Firefox completely "
            "before running this tool to avoid database corruption."
        )
        return confirm_from_stream("Do you want to continue? (y/n)", sys.stdin)

    try:
        scrub_history(options, confirm=_confirm)
    except ScrubError as exc:
        print(f"ERROR: {exc}")
        return _exit_code_for(exc)
    return ExitCode.OK


def _run_profiles(args: argparse.Namespace) -> int:
    try:
        root = args.data_root if args.data_root is not None else firefox_data_root()
        registry = read_profile_registry(root)
    except ScrubError as exc:
        print(f"ERROR: {exc}")
        return _exit_code_for(exc)

    for profile in list_registry_profiles(registry):
        marker = "*" if profile.is_default else " "
        print(f"{marker} [{profile.section}] {profile.name}: {profile.resolve(root)}")

    default = default_profile_from_registry(registry, root)
    print(f"Default profile: {default if default is not None else '(none)'}")
    return ExitCode.OK


def main(argv: list[str] | None = None) -> int:
    """
    CLI entry point.

    Parameters
    ----------
    argv:
        Optional argument vector. If None, argparse uses sys.argv.

    Returns
    -------
    int
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        setup_logging(args.log_level, args.log_file)
    except (ValueError, OSError) as exc:
        print(f"ERROR: {exc}")
        return ExitCode.CONFIG_ERROR

    if args.command == "clean":
        return _run_clean(args)

    if args.command == "profiles":
        return _run_profiles(args)

    parser.print_help()
    return ExitCode.OK


if __name__ == "__main__":
    raise SystemExit(main())
