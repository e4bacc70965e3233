"""Help panel content.

Built from the command table and the active Normal-mode bindings so the
panel always reflects configured keys. Presentation-only, no side effects.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from ..commands import BUILTIN_COMMANDS, CommandSpec
from ..ui_theme import UITheme

_KEY_LABELS = {
    "UP": "Up",
    "DOWN": "Down",
    "LEFT": "Left",
    "RIGHT": "Right",
    "HOME": "Home",
    "END": "End",
    "PAGE_UP": "PgUp",
    "PAGE_DOWN": "PgDn",
    "TAB": "Tab",
    "SHIFT_TAB": "Shift+Tab",
    "ENTER": "Enter",
    "BACKSPACE": "Backspace",
    "DELETE": "Del",
    "MOUSE_WHEEL_UP": "Wheel up",
    "MOUSE_WHEEL_DOWN": "Wheel down",
}


def key_label(token: str) -> str:
    if token.startswith("CTRL_"):
        return f"Ctrl+{token[5:]}"
    return _KEY_LABELS.get(token, token)


def _group_keys(bindings: Sequence[tuple[str, str]]) -> list[tuple[str, str]]:
    grouped: dict[str, list[str]] = {}
    for key, line in bindings:
        grouped.setdefault(line, []).append(key_label(key))
    return [("/".join(keys), line) for line, keys in grouped.items()]


def help_lines(
    theme: UITheme,
    bindings: Sequence[tuple[str, str]] = (),
    commands: Iterable[CommandSpec] = BUILTIN_COMMANDS,
) -> list[str]:
    """Styled help text: modes, key bindings, then commands."""
    heading, key, dim, reset = theme.help_heading, theme.help_key, theme.help_dim, theme.reset
    lines = [
        f"{heading}MODES{reset}",
        f"  {key}:{reset} command   {key}/{reset} search forward   {key}?{reset} search backward",
        f"  {key}Enter{reset} run   {key}Esc{reset} cancel   {key}Up/Down{reset} command history",
        f"  {key}Ctrl+C{reset} quit (asks first)",
        "",
    ]
    if bindings:
        lines.append(f"{heading}KEYS{reset}")
        for keys, line in _group_keys(bindings):
            lines.append(f"  {key}{keys:<16}{reset} {line}")
        lines.append("")
    lines.append(f"{heading}COMMANDS{reset}")
    for spec in commands:
        aliases = f" {dim}({', '.join(spec.aliases)}){reset}" if spec.aliases else ""
        lines.append(f"  {key}:{spec.usage:<28}{reset} {spec.summary}{aliases}")
    lines.append("")
    lines.append(f"{dim}Press H or Esc to close{reset}")
    return lines


__all__ = ["key_label", "help_lines"]
