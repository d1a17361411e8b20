"""
Word list loading.

A word list is a UTF-8 text file with one keyword per line. Blank lines and
lines starting with '#' (after trimming) are ignored. Keywords keep their
original case; case-insensitive matching is left to the query layer.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from scrub_engine.errors import WordListError

logger = logging.getLogger(__name__)

COMMENT_PREFIX = "#"


def parse_keywords(lines: Iterable[str]) -> tuple[str, ...]:
    """
    Extract keywords from raw lines.

    Parameters
    ----------
    lines:
        Raw text lines, with or without trailing newlines.

    Returns
    -------
    tuple[str, ...]
        Trimmed keywords in source order. Duplicates are kept.
    """
    keywords: list[str] = []
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith(COMMENT_PREFIX):
            continue
        keywords.append(line)
    return tuple(keywords)


def load_keywords(source: Path) -> tuple[str, ...]:
    """
    Load keywords from a word list file.

    Parameters
    ----------
    source:
        Path to the word list.

    Returns
    -------
    tuple[str, ...]
        Parsed keywords. May be empty; callers decide whether that is an error.

    Raises
    ------
    WordListError
        If the file cannot be opened or decoded.
    """
    path = Path(source).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise WordListError(f"Words file not found: {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise WordListError(f"Could not read words file {path}: {exc}") from exc

    keywords = parse_keywords(text.splitlines())
    logger.debug("Loaded %d keyword(s) from %s", len(keywords), path)
    return keywords
