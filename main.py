"""Application entry point for the rotating log store CLI."""
from __future__ import annotations

from logrotor.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
