"""
Pre-cleanup database snapshots.

A snapshot is a zstandard-compressed copy of places.sqlite written before any
row is deleted. It is taken through the SQLite online backup API, so the copy
is consistent even while the database is in WAL mode.

Snapshots are an operator safety artifact. foxscrub never reads or restores
them.
"""

from __future__ import annotations

import logging
import sqlite3
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import zstandard as zstd

from scrub_engine.errors import SnapshotError

logger = logging.getLogger(__name__)

SNAPSHOT_SUFFIX = ".sqlite.zst"


@dataclass(frozen=True, slots=True)
class SnapshotResult:
    """
    Result of writing a snapshot.

    Attributes
    ----------
    snapshot_path:
        Path of the compressed snapshot.
    uncompressed_bytes:
        Size of the database copy before compression.
    """

    snapshot_path: Path
    uncompressed_bytes: int


def snapshot_file_name(taken_at: datetime) -> str:
    """
    Return the snapshot file name for an instant.

    The timestamp in the name is always UTC. Naive datetimes are taken to be
    UTC already.
    """
    if taken_at.tzinfo is None:
        taken_at = taken_at.replace(tzinfo=timezone.utc)
    stamp = taken_at.astimezone(timezone.utc).strftime("%Y%m%d_%H%M%SZ")
    return f"places-{stamp}{SNAPSHOT_SUFFIX}"


def write_database_snapshot(
    conn: sqlite3.Connection,
    *,
    snapshot_dir: Path,
    taken_at: datetime | None = None,
) -> SnapshotResult:
    """
    Write a compressed copy of the open database into `snapshot_dir`.

    Parameters
    ----------
    conn:
        Open places database connection.
    snapshot_dir:
        Output directory (created if missing).
    taken_at:
        Instant used in the file name. Defaults to the current time.

    Returns
    -------
    SnapshotResult
        Location and size of the snapshot.

    Raises
    ------
    SnapshotError
        If the output already exists or the copy cannot be written.
    """
    instant = taken_at if taken_at is not None else datetime.now(timezone.utc)
    output_path = Path(snapshot_dir).expanduser() / snapshot_file_name(instant)

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise SnapshotError(f"Could not create snapshot directory {output_path.parent}: {exc}") from exc

    if output_path.exists():
        raise SnapshotError(f"Refusing to overwrite existing snapshot: {output_path}")

    with tempfile.TemporaryDirectory(prefix="foxscrub-") as tmp:
        copy_path = Path(tmp) / "places.sqlite"
        try:
            target = sqlite3.connect(copy_path)
            try:
                conn.backup(target)
            finally:
                target.close()
        except sqlite3.Error as exc:
            raise SnapshotError(f"Could not copy database for snapshot: {exc}") from exc

        try:
            uncompressed = copy_path.stat().st_size
            _compress_file(copy_path, output_path)
        except FileExistsError as exc:
            raise SnapshotError(f"Refusing to overwrite existing snapshot: {output_path}") from exc
        except (OSError, zstd.ZstdError) as exc:
            output_path.unlink(missing_ok=True)
            raise SnapshotError(f"Could not write snapshot {output_path}: {exc}") from exc

    logger.info("Wrote database snapshot %s (%d bytes uncompressed)", output_path, uncompressed)
    return SnapshotResult(snapshot_path=output_path, uncompressed_bytes=uncompressed)


def _compress_file(source: Path, output_path: Path) -> None:
    cctx = zstd.ZstdCompressor()
    with source.open("rb") as src, output_path.open("xb") as raw:
        cctx.copy_stream(src, raw)
