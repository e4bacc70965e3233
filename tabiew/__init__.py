"""tabiew: browse and query CSV and Parquet tables in the terminal.

The interactive entry point is ``main``; tables, the query engine and the
registry live in ``tabiew.table``, ``tabiew.query`` and ``tabiew.registry``.
"""

from __future__ import annotations

from collections.abc import Sequence

__version__ = "0.1.0"


def main(argv: Sequence[str] | None = None) -> None:
    """Run the viewer; imported on first call so ``import tabiew`` stays cheap."""
    from .cli import main as cli_main

    cli_main(argv)


__all__ = ["__version__", "main"]
