"""Command-line front door for tabiew.

Parses CLI options, loads the given files (or standard input) into the
table registry, then hands control to the interactive runtime.
"""

from __future__ import annotations

import argparse
import contextlib
import logging
import os
import sys
from collections.abc import Sequence
from pathlib import Path

from .app import App, QueryWorker
from .commands import default_commands
from .config import load_config, load_keybindings, load_status_seconds, load_theme_name, load_tick_ms
from .errors import ConfigError, DecodeError
from .input import Keybind
from .logs import setup_logging
from .registry import TableRegistry
from .runtime.events import EventSource
from .runtime.loop import RuntimeLoopOptions, run_main_loop
from .runtime.terminal import TerminalController
from .table.loader import FileFormat, InferSchema, LoadOptions, load, load_stdin, table_name_for
from .ui_theme import available_theme_names, resolve_theme

logger = logging.getLogger(__name__)

STDIN_TABLE_NAME = "stdin"
_ESCAPES = {"\\t": "\t", "tab": "\t", "\\n": "\n", "\\\\": "\\"}


def _single_char(value: str) -> str:
    """argparse type for one-character delimiters (``\\t`` accepted)."""
    resolved = _ESCAPES.get(value, value)
    if len(resolved) != 1:
        raise argparse.ArgumentTypeError(f"expected a single character, got {value!r}")
    return resolved


def _quote_char(value: str) -> str | None:
    """Like ``_single_char`` but an empty value disables quoting."""
    if value == "":
        return None
    return _single_char(value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tabiew",
        description="View and query CSV and Parquet files as tables in the terminal.",
    )
    parser.add_argument("files", nargs="*", type=Path, help="Files to open. Reads standard input when omitted.")
    parser.add_argument(
        "--format",
        choices=[fmt.value for fmt in FileFormat],
        default=FileFormat.DSV.value,
        help="Input format (default: dsv).",
    )
    parser.add_argument("--separator", type=_single_char, default=",", help="Field separator for dsv input.")
    parser.add_argument(
        "--quote-char",
        type=_quote_char,
        default='"',
        help="Quote character for dsv input; empty disables quoting.",
    )
    parser.add_argument("--no-header", action="store_true", help="Treat the first row as data.")
    parser.add_argument(
        "--infer-schema",
        choices=[mode.value for mode in InferSchema],
        default=InferSchema.SAFE.value,
        help="Column type inference (default: safe).",
    )
    parser.add_argument("--ignore-errors", action="store_true", help="Turn unparsable cells into nulls.")
    parser.add_argument(
        "--theme",
        default=None,
        help=f"UI theme name ({', '.join(available_theme_names())}, plain).",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable color output.")
    parser.add_argument("--no-mouse", action="store_true", help="Leave mouse events to the terminal.")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Log file verbosity (default: WARNING).",
    )
    return parser


def load_options_from_args(args: argparse.Namespace) -> LoadOptions:
    return LoadOptions(
        has_header=not args.no_header,
        separator=args.separator,
        quote_char=args.quote_char,
        infer_schema=InferSchema(args.infer_schema),
        ignore_errors=args.ignore_errors,
        format=FileFormat(args.format),
    )


def load_files(app: App, paths: Sequence[Path], options: LoadOptions) -> list[DecodeError]:
    """Decode every path and open each as a table tab, in order.

    A file that fails to decode is skipped; the failures are returned and
    shown in the status line once loading is done.
    """
    failures: list[DecodeError] = []
    for path in paths:
        try:
            table = load(path, options)
        except DecodeError as exc:
            logger.warning("skipping %s: %s", path, exc.message)
            failures.append(exc)
            continue
        tab = app.open_table(table_name_for(path), table, path)
        logger.info("loaded %s as %s (%d rows)", path, tab.name, table.height)
    if app.tabs:
        app.select_tab(0)
    if failures:
        app.set_status("; ".join(exc.message for exc in failures), error=True)
    return failures


def _open_tty_fd(stdin_is_data: bool) -> int:
    """File descriptor to read keys from; ``/dev/tty`` when stdin held data."""
    if stdin_is_data:
        try:
            return os.open("/dev/tty", os.O_RDONLY)
        except OSError as exc:
            raise SystemExit(f"cannot open terminal for input: {exc.strerror or exc}") from exc
    return sys.stdin.fileno()


def main(argv: Sequence[str] | None = None) -> None:
    """Parse CLI arguments, load tables and run the interactive viewer."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    try:
        config = load_config()
        theme = resolve_theme(args.theme or load_theme_name(config), no_color=args.no_color)
        commands = default_commands()
        keybind = Keybind.from_config(commands, load_keybindings(config))
        status_seconds = load_status_seconds(config)
        tick_ms = load_tick_ms(config)
    except ConfigError as exc:
        print(f"tabiew: {exc.message}", file=sys.stderr)
        raise SystemExit(2) from None

    stdin_is_data = not args.files and not sys.stdin.isatty()
    if not args.files and not stdin_is_data:
        parser.error("no input files given and standard input is a terminal")
    if not sys.stdout.isatty():
        raise SystemExit("tabiew: standard output is not a terminal")

    registry = TableRegistry()
    app = App(registry, commands, keybind, worker=QueryWorker(), status_seconds=status_seconds)
    options = load_options_from_args(args)
    spool: Path | None = None
    if stdin_is_data:
        spool = load_stdin()
        try:
            table = load(spool, options)
        except DecodeError as exc:
            spool.unlink(missing_ok=True)
            print(f"tabiew: {exc.message}", file=sys.stderr)
            raise SystemExit(2) from None
        app.open_table(STDIN_TABLE_NAME, table, spool)
    else:
        failures = load_files(app, args.files, options)
        if not app.tabs:
            for exc in failures:
                print(f"tabiew: {exc.message}", file=sys.stderr)
            raise SystemExit(2)

    stdin_fd = _open_tty_fd(stdin_is_data)
    stdout_fd = sys.stdout.fileno()
    try:
        terminal = TerminalController(stdin_fd, stdout_fd, mouse=not args.no_mouse)
        events = EventSource(stdin_fd, tick_ms)
        run_main_loop(app, terminal, events, RuntimeLoopOptions(stdout_fd=stdout_fd, theme=theme))
    finally:
        app.quit()
        if stdin_is_data:
            with contextlib.suppress(OSError):
                os.close(stdin_fd)
        if spool is not None:
            spool.unlink(missing_ok=True)


if __name__ == "__main__":
    main()
