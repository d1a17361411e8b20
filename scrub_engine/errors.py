"""
Domain exceptions for foxscrub.

Notes
-----
Engine code does not raise generic exceptions for expected failure modes.
Every failure maps to one of the classes below so the CLI can choose an exit
code without inspecting messages.
"""

from __future__ import annotations


class ScrubError(RuntimeError):
    """Base exception for all foxscrub domain failures."""


class WordListError(ScrubError):
    """Raised when the word list file cannot be opened or read."""


class NotFoundError(ScrubError):
    """Raised when a required file or directory does not exist."""


class ProfileNotFoundError(NotFoundError):
    """Raised when no Firefox profile directory can be determined."""


class DatabaseNotFoundError(NotFoundError):
    """Raised when places.sqlite is missing from the profile directory."""


class ProfileRegistryError(ScrubError):
    """Raised when profiles.ini exists but cannot be read."""


class ConfigError(ScrubError):
    """Raised when the resolved inputs do not allow a cleanup run."""


class EmptyKeywordSetError(ConfigError):
    """Raised when the word list yields no keywords to search for."""


class SafetyAbortError(ScrubError):
    """Raised when Firefox appears to be running and the operator declined to continue."""


class StoreOpenError(ScrubError):
    """Raised when the places database cannot be opened."""


class SnapshotError(ScrubError):
    """Raised when a pre-cleanup database snapshot cannot be written."""


class CleanupError(ScrubError):
    """
    Base class for failures while querying or modifying the places database.

    Attributes
    ----------
    table:
        Table involved in the failing statement, if any.
    operation:
        Short name of the failing operation, e.g. "select" or "delete".
    """

    def __init__(self, message: str, *, table: str | None = None, operation: str | None = None) -> None:
        super().__init__(message)
        self.table = table
        self.operation = operation


class QueryError(CleanupError):
    """Raised when a read query against the places database fails."""


class TransactionError(CleanupError):
    """Raised when a transaction cannot be started or committed."""


class DeletionError(CleanupError):
    """Raised when a delete statement fails. The transaction is rolled back."""
