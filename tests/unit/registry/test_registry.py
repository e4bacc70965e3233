"""Table registry naming, lookup and snapshot behavior."""

from __future__ import annotations

import unittest
from pathlib import Path

from tabiew.errors import InvalidTableName, UnknownTable
from tabiew.registry import TableInfo, TableRegistry
from tabiew.table import Table


def _table(*values: int) -> Table:
    return Table.from_rows(["n"], [(value,) for value in values])


class TableRegistryTests(unittest.TestCase):
    def test_register_then_lookup_returns_same_table(self) -> None:
        registry = TableRegistry()
        table = _table(1, 2)
        name = registry.register("people", table, Path("people.csv"))
        self.assertEqual(name, "people")
        self.assertIs(registry.lookup(name), table)
        self.assertEqual(registry.entry(name).origin, Path("people.csv"))

    def test_name_collision_gets_numeric_suffix(self) -> None:
        registry = TableRegistry()
        first = _table(1)
        self.assertEqual(registry.register("t", first), "t")
        self.assertEqual(registry.register("t", _table(2)), "t_2")
        self.assertEqual(registry.register("t", _table(3)), "t_3")
        self.assertIs(registry.lookup("t"), first)
        self.assertEqual(registry.names(), ("t", "t_2", "t_3"))

    def test_empty_name_is_rejected(self) -> None:
        with self.assertRaises(InvalidTableName):
            TableRegistry().register("  ", _table(1))

    def test_lookup_unknown_raises_and_get_returns_none(self) -> None:
        registry = TableRegistry()
        with self.assertRaises(UnknownTable):
            registry.lookup("nope")
        self.assertIsNone(registry.get("nope"))

    def test_list_reports_shape_in_registration_order(self) -> None:
        registry = TableRegistry()
        registry.register("b", _table(1, 2, 3))
        registry.register("a", Table.empty())
        self.assertEqual(registry.list(), [TableInfo("b", 3, 1), TableInfo("a", 0, 0)])

    def test_rename_keeps_position_and_suffixes_on_collision(self) -> None:
        registry = TableRegistry()
        registry.register("a", _table(1))
        registry.register("b", _table(2))
        registry.register("c", _table(3))
        self.assertEqual(registry.rename("b", "c"), "c_2")
        self.assertEqual(registry.names(), ("a", "c_2", "c"))
        self.assertEqual(registry.lookup("c_2").row(0), (2,))

    def test_drop_removes_entry(self) -> None:
        registry = TableRegistry()
        registry.register("a", _table(1))
        registry.drop("a")
        self.assertNotIn("a", registry)
        self.assertEqual(len(registry), 0)
        with self.assertRaises(UnknownTable):
            registry.drop("a")

    def test_snapshot_is_read_only_and_detached(self) -> None:
        registry = TableRegistry()
        registry.register("a", _table(1))
        snapshot = registry.snapshot()
        registry.register("b", _table(2))
        self.assertEqual(list(snapshot), ["a"])
        with self.assertRaises(TypeError):
            snapshot["c"] = _table(3)  # type: ignore[index]


if __name__ == "__main__":
    unittest.main()
