"""Tests for UI theme selection."""

from __future__ import annotations

import unittest

from tabiew.table import Kind
from tabiew.ui_theme import (
    DEFAULT_THEME,
    OCEAN_THEME,
    PLAIN_THEME,
    available_theme_names,
    normalize_theme_name,
    resolve_theme,
)


class ThemeSelectionTests(unittest.TestCase):
    def test_available_names_exclude_plain(self) -> None:
        self.assertEqual(available_theme_names(), ("default", "ocean"))

    def test_resolve_by_name(self) -> None:
        self.assertIs(resolve_theme(None), DEFAULT_THEME)
        self.assertIs(resolve_theme(" Ocean "), OCEAN_THEME)
        self.assertIs(resolve_theme("plain"), PLAIN_THEME)
        self.assertIs(resolve_theme("nope"), DEFAULT_THEME)

    def test_no_color_wins(self) -> None:
        self.assertIs(resolve_theme("ocean", no_color=True), PLAIN_THEME)

    def test_normalize(self) -> None:
        self.assertEqual(normalize_theme_name(""), "default")
        self.assertEqual(normalize_theme_name("OCEAN"), "ocean")

    def test_value_colors_by_kind(self) -> None:
        self.assertEqual(DEFAULT_THEME.value_color(Kind.INTEGER), DEFAULT_THEME.value_number)
        self.assertEqual(DEFAULT_THEME.value_color(Kind.FLOAT), DEFAULT_THEME.value_number)
        self.assertEqual(DEFAULT_THEME.value_color(Kind.BOOLEAN), DEFAULT_THEME.value_boolean)
        self.assertEqual(DEFAULT_THEME.value_color(Kind.STRING), DEFAULT_THEME.value_string)


if __name__ == "__main__":
    unittest.main()
