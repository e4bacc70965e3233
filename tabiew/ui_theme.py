"""UI theme definitions and selection helpers.

Themes are ANSI palettes for the table grid, tab bar, status line and help
panel. Syntax colors for the command line come from Pygments separately.
"""

from __future__ import annotations

from dataclasses import dataclass

from .table import Kind


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by renderers."""

    name: str
    reset: str
    tab_active: str
    tab_inactive: str
    header: str
    header_selected: str
    row_selected: str
    cell_selected: str
    value_number: str
    value_string: str
    value_boolean: str
    value_temporal: str
    status: str
    status_error: str
    prompt: str
    help_heading: str
    help_key: str
    help_dim: str

    def value_color(self, kind: Kind) -> str:
        if kind.is_numeric:
            return self.value_number
        if kind is Kind.BOOLEAN:
            return self.value_boolean
        if kind is Kind.TEMPORAL:
            return self.value_temporal
        return self.value_string


DEFAULT_THEME = UITheme(
    name="default",
    reset="\033[0m",
    tab_active="\033[1;38;5;81m",
    tab_inactive="\033[2;38;5;250m",
    header="\033[1;38;5;252m",
    header_selected="\033[1;4;38;5;81m",
    row_selected="\033[48;5;237m",
    cell_selected="\033[7m",
    value_number="\033[38;5;110m",
    value_string="\033[38;5;252m",
    value_boolean="\033[38;5;214m",
    value_temporal="\033[38;5;42m",
    status="\033[38;5;250m",
    status_error="\033[1;38;5;203m",
    prompt="\033[1;38;5;229m",
    help_heading="\033[1;38;5;81m",
    help_key="\033[38;5;229m",
    help_dim="\033[2;38;5;250m",
)

OCEAN_THEME = UITheme(
    name="ocean",
    reset="\033[0m",
    tab_active="\033[1;38;5;45m",
    tab_inactive="\033[2;38;5;110m",
    header="\033[1;38;5;153m",
    header_selected="\033[1;4;38;5;45m",
    row_selected="\033[48;5;24m",
    cell_selected="\033[7m",
    value_number="\033[38;5;117m",
    value_string="\033[38;5;252m",
    value_boolean="\033[38;5;215m",
    value_temporal="\033[38;5;84m",
    status="\033[38;5;110m",
    status_error="\033[1;38;5;210m",
    prompt="\033[1;38;5;153m",
    help_heading="\033[1;38;5;45m",
    help_key="\033[38;5;153m",
    help_dim="\033[2;38;5;110m",
)

PLAIN_THEME = UITheme(
    name="plain",
    reset="\033[0m",
    tab_active="\033[7m",
    tab_inactive="",
    header="",
    header_selected="",
    row_selected="",
    cell_selected="\033[7m",
    value_number="",
    value_string="",
    value_boolean="",
    value_temporal="",
    status="",
    status_error="",
    prompt="",
    help_heading="",
    help_key="",
    help_dim="",
)

_THEMES: dict[str, UITheme] = {
    DEFAULT_THEME.name: DEFAULT_THEME,
    OCEAN_THEME.name: OCEAN_THEME,
}


def available_theme_names() -> tuple[str, ...]:
    """Return selectable non-plain theme names."""
    return tuple(sorted(_THEMES.keys()))


def normalize_theme_name(name: str | None) -> str:
    """Return a valid theme name, falling back to default."""
    if not name:
        return DEFAULT_THEME.name
    candidate = str(name).strip().lower()
    if candidate in _THEMES:
        return candidate
    return DEFAULT_THEME.name


def resolve_theme(name: str | None, *, no_color: bool = False) -> UITheme:
    """Return concrete theme for requested name and color mode."""
    if no_color or (name or "").strip().lower() == PLAIN_THEME.name:
        return PLAIN_THEME
    return _THEMES[normalize_theme_name(name)]


__all__ = [
    "UITheme",
    "DEFAULT_THEME",
    "OCEAN_THEME",
    "PLAIN_THEME",
    "available_theme_names",
    "normalize_theme_name",
    "resolve_theme",
]
