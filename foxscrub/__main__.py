"""
Module entrypoint for the foxscrub CLI.

This file exists so that `python -m foxscrub ...` works without the
console-script wrapper installed. It contains no business logic.
"""

from __future__ import annotations

from foxscrub.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
