"""Keybinding defaults, overrides and key-name normalization."""

from __future__ import annotations

import unittest

from tabiew.commands import default_commands
from tabiew.errors import ConfigError
from tabiew.input import Keybind, normalize_key_name
from tabiew.input.keybind import NORMAL, SEARCH


class KeyNameTests(unittest.TestCase):
    def test_aliases_normalize_to_reader_tokens(self) -> None:
        self.assertEqual(normalize_key_name("ctrl+f"), "CTRL_F")
        self.assertEqual(normalize_key_name("Ctrl-D"), "CTRL_D")
        self.assertEqual(normalize_key_name("PgDn"), "PAGE_DOWN")
        self.assertEqual(normalize_key_name("j"), "j")

    def test_unknown_key_name_is_a_config_error(self) -> None:
        with self.assertRaises(ConfigError):
            normalize_key_name("hyper+x")


class KeybindTests(unittest.TestCase):
    def test_defaults_resolve_to_invocations(self) -> None:
        keybind = Keybind.default(default_commands())
        invocation = keybind.resolve("j", NORMAL)
        self.assertEqual((invocation.name, invocation.args), ("godown", ()))
        wheel = keybind.resolve("MOUSE_WHEEL_DOWN", NORMAL)
        self.assertEqual((wheel.name, wheel.args), ("godown", ("3",)))
        self.assertEqual(keybind.resolve("CTRL_T", SEARCH).name, "case")
        self.assertIsNone(keybind.resolve("j", SEARCH))

    def test_overrides_replace_and_remove_defaults(self) -> None:
        keybind = Keybind.from_config(
            default_commands(),
            {"normal": {"j": "goup", "ctrl+f": "", "z": "order age desc"}},
        )
        self.assertEqual(keybind.resolve("j", NORMAL).name, "goup")
        self.assertIsNone(keybind.resolve("CTRL_F", NORMAL))
        self.assertEqual(keybind.resolve("z", NORMAL).args, ("age", "desc"))

    def test_reserved_key_cannot_be_bound(self) -> None:
        with self.assertRaises(ConfigError):
            Keybind.from_config(default_commands(), {"normal": {":": "quit"}})

    def test_unknown_command_or_mode_is_a_config_error(self) -> None:
        with self.assertRaises(ConfigError):
            Keybind.from_config(default_commands(), {"normal": {"z": "frobnicate"}})
        with self.assertRaises(ConfigError):
            Keybind.from_config(default_commands(), {"visual": {"z": "quit"}})


if __name__ == "__main__":
    unittest.main()
