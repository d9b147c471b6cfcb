"""Module entrypoint for `python -m braintest`."""

from __future__ import annotations

import sys

from .main import run


def main(argv: list[str] | None = None) -> int:
    """Run the CLI with process arguments unless explicit ones are given."""
    return run(sys.argv[1:] if argv is None else argv)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
