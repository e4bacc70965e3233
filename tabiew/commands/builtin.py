"""Built-in command handlers and the default command table."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import CommandError
from ..table import Kind, Table
from .dispatcher import CommandKind, CommandResult, CommandSpec, CommandTable, Confirmation

if TYPE_CHECKING:
    from ..app.machine import App


def _parse_int(value: str, what: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise CommandError(f"{what} must be a number, got {value!r}") from None


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


# tables and queries


def cmd_query(app: App, args: list[str]) -> CommandResult | None:
    return app.submit_query(args[0])


def cmd_select(app: App, args: list[str]) -> CommandResult | None:
    tab = app.require_tab()
    text = f"SELECT {args[0]} FROM {_quote_identifier(tab.name)}"
    return app.submit_query(text, extra_tables={tab.name: tab.table})


def cmd_filter(app: App, args: list[str]) -> CommandResult:
    view = app.require_tab().view
    view.set_filter(args[0])
    return CommandResult(f"{view.visible_count} of {view.table.height} rows match")


def cmd_unfilter(app: App, args: list[str]) -> None:
    app.require_tab().view.clear_filter()


def cmd_order(app: App, args: list[str]) -> None:
    ascending = True
    if len(args) == 2:
        direction = args[1].lower()
        if direction not in {"asc", "desc"}:
            raise CommandError(f"sort direction must be asc or desc, got {args[1]!r}")
        ascending = direction == "asc"
    app.require_tab().view.set_sort(args[0], ascending)


def cmd_unorder(app: App, args: list[str]) -> None:
    app.require_tab().view.clear_sort()


def cmd_reset(app: App, args: list[str]) -> None:
    app.require_tab().view.reset()


def cmd_close(app: App, args: list[str]) -> CommandResult | None:
    tab = app.require_tab()
    if tab.needs_close_confirmation:
        index = app.active
        return CommandResult(
            confirm=Confirmation(
                prompt=f"Close query tab {tab.name!r}? (y/n)",
                action=lambda: app.close_tab(index),
            )
        )
    return app.close_tab()


def cmd_close_force(app: App, args: list[str]) -> CommandResult | None:
    app.require_tab()
    return app.close_tab()


def cmd_tab_next(app: App, args: list[str]) -> None:
    app.switch_tab(1)


def cmd_tab_prev(app: App, args: list[str]) -> None:
    app.switch_tab(-1)


def cmd_tab(app: App, args: list[str]) -> None:
    app.select_tab(_parse_int(args[0], "tab number") - 1)


def cmd_rename(app: App, args: list[str]) -> CommandResult:
    if len(args) == 1:
        old, new = app.require_tab().name, args[0]
    else:
        old, new = args
    effective = app.registry.rename(old, new)
    for tab in app.tabs:
        if tab.name == old:
            tab.rename(effective)
    return CommandResult(f"renamed {old} to {effective}")


def cmd_drop(app: App, args: list[str]) -> CommandResult:
    app.registry.drop(args[0])
    return CommandResult(f"dropped {args[0]}")


def cmd_tables(app: App, args: list[str]) -> None:
    listing = Table.from_rows(
        ["name", "rows", "columns"],
        [(info.name, info.row_count, info.column_count) for info in app.registry.list()],
        kinds=[Kind.STRING, Kind.INTEGER, Kind.INTEGER],
    )
    app.show_listing("tables", listing)


# motion


def cmd_goto(app: App, args: list[str]) -> None:
    app.require_tab().view.select_row(_parse_int(args[0], "row") - 1)


def cmd_column(app: App, args: list[str]) -> None:
    view = app.require_tab().view
    target = args[0]
    if target.isdigit():
        view.select_column(int(target) - 1)
    else:
        view.select_column(target)


def _count(args: list[str]) -> int:
    return _parse_int(args[0], "count") if args else 1


def cmd_go_up(app: App, args: list[str]) -> None:
    app.require_tab().view.move_selection(-_count(args))


def cmd_go_down(app: App, args: list[str]) -> None:
    app.require_tab().view.move_selection(_count(args))


def cmd_left(app: App, args: list[str]) -> None:
    app.require_tab().view.move_column(-1)


def cmd_right(app: App, args: list[str]) -> None:
    app.require_tab().view.move_column(1)


def cmd_page_up(app: App, args: list[str]) -> None:
    app.require_tab().view.move_selection(-app.page_rows)


def cmd_page_down(app: App, args: list[str]) -> None:
    app.require_tab().view.move_selection(app.page_rows)


def cmd_half_up(app: App, args: list[str]) -> None:
    app.require_tab().view.move_selection(-max(1, app.page_rows // 2))


def cmd_half_down(app: App, args: list[str]) -> None:
    app.require_tab().view.move_selection(max(1, app.page_rows // 2))


def cmd_top(app: App, args: list[str]) -> None:
    app.require_tab().view.select_row(0)


def cmd_bottom(app: App, args: list[str]) -> None:
    view = app.require_tab().view
    view.select_row(view.visible_count - 1)


def cmd_search_next(app: App, args: list[str]) -> CommandResult | None:
    return app.repeat_search(reverse=False)


def cmd_search_prev(app: App, args: list[str]) -> CommandResult | None:
    return app.repeat_search(reverse=True)


# display


def cmd_case(app: App, args: list[str]) -> CommandResult:
    app.search_case_sensitive = not app.search_case_sensitive
    state = "on" if app.search_case_sensitive else "off"
    return CommandResult(f"case-sensitive search {state}")


def cmd_width(app: App, args: list[str]) -> None:
    app.require_tab().view.set_column_width(args[0], _parse_int(args[1], "width"))


def cmd_help(app: App, args: list[str]) -> None:
    app.show_help = not app.show_help


def cmd_quit(app: App, args: list[str]) -> CommandResult:
    return CommandResult(quit=True)


def _spec(
    kind: CommandKind,
    handler,
    aliases: tuple[str, ...] = (),
    min_args: int = 0,
    max_args: int | None = 0,
    raw: bool = False,
    usage: str = "",
    summary: str = "",
) -> CommandSpec:
    return CommandSpec(
        kind=kind,
        name=kind.value,
        handler=handler,
        aliases=aliases,
        min_args=min_args,
        max_args=max_args,
        raw=raw,
        usage=usage or kind.value,
        summary=summary,
    )


BUILTIN_COMMANDS: tuple[CommandSpec, ...] = (
    _spec(CommandKind.QUERY, cmd_query, ("Q", "sql"), 1, 1, True, "query <sql>", "Run a query in a new tab"),
    _spec(CommandKind.SELECT, cmd_select, ("S",), 1, 1, True, "select <columns...>", "Query the current tab"),
    _spec(CommandKind.FILTER, cmd_filter, ("F", "where"), 1, 1, True, "filter <condition>", "Filter rows"),
    _spec(CommandKind.UNFILTER, cmd_unfilter, summary="Clear the filter"),
    _spec(CommandKind.ORDER, cmd_order, ("O", "sort"), 1, 2, usage="order <column> [asc|desc]", summary="Sort rows"),
    _spec(CommandKind.UNORDER, cmd_unorder, summary="Clear the sort"),
    _spec(CommandKind.RESET, cmd_reset, summary="Clear sort, filter and selection"),
    _spec(CommandKind.CLOSE, cmd_close, ("tabclose", "x"), summary="Close the current tab"),
    _spec(CommandKind.CLOSE_FORCE, cmd_close_force, summary="Close without confirmation"),
    _spec(CommandKind.TAB_NEXT, cmd_tab_next, ("tabn",), summary="Next tab"),
    _spec(CommandKind.TAB_PREV, cmd_tab_prev, ("tabp",), summary="Previous tab"),
    _spec(CommandKind.TAB, cmd_tab, (), 1, 1, usage="tab <n>", summary="Go to tab n"),
    _spec(CommandKind.RENAME, cmd_rename, ("tabr",), 1, 2, usage="rename [old] <new>", summary="Rename a table"),
    _spec(CommandKind.DROP, cmd_drop, (), 1, 1, usage="drop <table>", summary="Unregister a table"),
    _spec(CommandKind.TABLES, cmd_tables, ("schema",), summary="List registered tables"),
    _spec(CommandKind.GOTO, cmd_goto, ("g",), 1, 1, usage="goto <row>", summary="Jump to row"),
    _spec(CommandKind.COLUMN, cmd_column, (), 1, 1, usage="col <name|n>", summary="Jump to column"),
    _spec(CommandKind.GO_UP, cmd_go_up, (), 0, 1, usage="goup [n]", summary="Move up"),
    _spec(CommandKind.GO_DOWN, cmd_go_down, (), 0, 1, usage="godown [n]", summary="Move down"),
    _spec(CommandKind.LEFT, cmd_left, summary="Previous column"),
    _spec(CommandKind.RIGHT, cmd_right, summary="Next column"),
    _spec(CommandKind.PAGE_UP, cmd_page_up, summary="Page up"),
    _spec(CommandKind.PAGE_DOWN, cmd_page_down, summary="Page down"),
    _spec(CommandKind.HALF_UP, cmd_half_up, summary="Half page up"),
    _spec(CommandKind.HALF_DOWN, cmd_half_down, summary="Half page down"),
    _spec(CommandKind.TOP, cmd_top, summary="First row"),
    _spec(CommandKind.BOTTOM, cmd_bottom, summary="Last row"),
    _spec(CommandKind.SEARCH_NEXT, cmd_search_next, summary="Next search match"),
    _spec(CommandKind.SEARCH_PREV, cmd_search_prev, summary="Previous search match"),
    _spec(CommandKind.CASE, cmd_case, summary="Toggle case-sensitive search"),
    _spec(CommandKind.WIDTH, cmd_width, (), 2, 2, usage="width <column> <n>", summary="Set a column width"),
    _spec(CommandKind.HELP, cmd_help, summary="Toggle help"),
    _spec(CommandKind.QUIT, cmd_quit, ("q",), summary="Quit"),
)


def default_commands() -> CommandTable:
    """Fresh, unfrozen table holding every built-in command."""
    table = CommandTable()
    for spec in BUILTIN_COMMANDS:
        table.register(spec)
    return table


__all__ = ["BUILTIN_COMMANDS", "default_commands"]
