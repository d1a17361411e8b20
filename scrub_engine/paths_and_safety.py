"""
Filesystem path policy and safety gates.

This module decides where foxscrub looks for Firefox data and whether it is
safe to touch a profile's database:

- The Firefox data root is platform specific (see `firefox_data_root`).
- A profile directory must exist and contain places.sqlite before any
  database connection is opened.
- If Firefox holds its profile lock file, the cleanup only proceeds after
  explicit operator confirmation.

The lock file check is advisory. A crashed Firefox can leave a stale lock
behind, and Firefox can start between the check and the first write. It
guards against the common mistake of cleaning a profile that is open; it
does not provide mutual exclusion.
"""

from __future__ import annotations

import logging
import os
import platform
from pathlib import Path
from typing import Callable

from scrub_engine.errors import DatabaseNotFoundError, ProfileNotFoundError, SafetyAbortError

logger = logging.getLogger(__name__)

PLACES_DATABASE_NAME = "places.sqlite"
PROFILE_REGISTRY_NAME = "profiles.ini"

WINDOWS_LOCK_FILE_NAME = "parent.lock"
POSIX_LOCK_FILE_NAME = ".parentlock"


def _current_system(system: str | None) -> str:
    return system if system is not None else platform.system()


def firefox_data_root(system: str | None = None) -> Path:
    """
    Resolve the Firefox data root for the current platform.

    Parameters
    ----------
    system:
        Optional platform name as returned by `platform.system()`. Used by
        tests to exercise other platforms.

    Returns
    -------
    Path
        Directory expected to contain profiles.ini.

    Raises
    ------
    ProfileNotFoundError
        If the platform is unsupported or its base directory cannot be determined.
    """
    name = _current_system(system)

    if name == "Windows":
        roaming = os.environ.get("APPDATA")
        if not roaming:
            raise ProfileNotFoundError("APPDATA environment variable is not set.")
        return Path(roaming) / "Mozilla" / "Firefox"

    if name == "Darwin":
        return Path.home() / "Library" / "Application Support" / "Firefox"

    if name == "Linux":
        return Path.home() / ".mozilla" / "firefox"

    raise ProfileNotFoundError(f"Unsupported operating system: {name!r}")


def validate_profile_directory(profile_dir: Path) -> Path:
    """
    Validate a profile directory and return its resolved absolute form.

    Raises
    ------
    ProfileNotFoundError
        If the directory does not exist or is not a directory.
    """
    candidate = Path(profile_dir).expanduser()
    try:
        resolved = candidate.resolve(strict=True)
    except (FileNotFoundError, NotADirectoryError) as exc:
        raise ProfileNotFoundError(f"Profile directory does not exist: {candidate}") from exc

    if not resolved.is_dir():
        raise ProfileNotFoundError(f"Profile path is not a directory: {resolved}")
    return resolved


def places_database_path(profile_dir: Path) -> Path:
    """
    Return the path of places.sqlite inside a profile, requiring it to exist.

    Raises
    ------
    DatabaseNotFoundError
        If the database file is missing.
    """
    db_path = profile_dir / PLACES_DATABASE_NAME
    if not db_path.is_file():
        raise DatabaseNotFoundError(
            f"Firefox database '{PLACES_DATABASE_NAME}' not found at {profile_dir}"
        )
    return db_path


def build_lock_file_path(profile_dir: Path, system: str | None = None) -> Path:
    """
    Build the path of the Firefox profile lock file.

    Parameters
    ----------
    profile_dir:
        Profile directory.
    system:
        Optional platform override.

    Returns
    -------
    Path
        parent.lock on Windows, .parentlock elsewhere.
    """
    if _current_system(system) == "Windows":
        return profile_dir / WINDOWS_LOCK_FILE_NAME
    return profile_dir / POSIX_LOCK_FILE_NAME


def is_firefox_running(profile_dir: Path, system: str | None = None) -> bool:
    """Return True if the profile lock file exists."""
    return build_lock_file_path(profile_dir, system=system).exists()


def check_running_instance(
    profile_dir: Path,
    *,
    confirm: Callable[[], bool],
    system: str | None = None,
) -> bool:
    """
    Gate destructive work on Firefox not holding the profile.

    Parameters
    ----------
    profile_dir:
        Profile directory to inspect.
    confirm:
        Called only when the lock file exists. Must return True to continue.
    system:
        Optional platform override.

    Returns
    -------
    bool
        True if a lock file was present and the operator confirmed, False if
        no lock file was found.

    Raises
    ------
    SafetyAbortError
        If the lock file exists and `confirm` returned False.
    """
    lock_path = build_lock_file_path(profile_dir, system=system)
    if not is_firefox_running(profile_dir, system=system):
        logger.debug("No lock file at %s", lock_path)
        return False

    logger.warning("Firefox lock file present: %s", lock_path)
    if not confirm():
        raise SafetyAbortError(
            "Firefox appears to be running. Close Firefox completely before running "
            f"this tool to avoid database corruption (lock file: {lock_path})."
        )
    logger.info("Operator confirmed cleanup with lock file present: %s", lock_path)
    return True
