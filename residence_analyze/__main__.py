"""Module entry point: python -m residence_analyze ..."""

from __future__ import annotations

from residence_analyze.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
