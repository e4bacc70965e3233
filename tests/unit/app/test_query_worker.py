"""Background query worker: submission, results, errors and cancellation."""

from __future__ import annotations

import threading
import unittest

from tabiew.app import QueryWorker
from tabiew.errors import CommandError, QueryCancelled, UnknownTable
from tabiew.table import Table


def _tables() -> dict[str, Table]:
    return {"t": Table.from_rows(["n"], [(1,), (2,), (3,)])}


class QueryWorkerTests(unittest.TestCase):
    def test_result_is_delivered_once(self) -> None:
        worker = QueryWorker()
        worker.submit("select n from t where n > 1", _tables())
        outcome = worker.wait(timeout=5)
        self.assertIsNotNone(outcome)
        self.assertTrue(outcome.ok)
        self.assertEqual(list(outcome.table.rows()), [(2,), (3,)])
        self.assertFalse(worker.busy)
        self.assertIsNone(worker.poll())

    def test_query_errors_come_back_as_outcomes(self) -> None:
        worker = QueryWorker()
        worker.submit("select * from missing", _tables())
        outcome = worker.wait(timeout=5)
        self.assertFalse(outcome.ok)
        self.assertIsInstance(outcome.error, UnknownTable)

    def test_only_one_query_runs_at_a_time(self) -> None:
        release = threading.Event()

        def slow_executor(query, tables, *, cancel):
            release.wait(5)
            return Table.empty()

        worker = QueryWorker(slow_executor)
        worker.submit("first", {})
        self.assertTrue(worker.busy)
        self.assertEqual(worker.pending_query, "first")
        with self.assertRaises(CommandError):
            worker.submit("second", {})
        release.set()
        self.assertTrue(worker.wait(timeout=5).ok)

    def test_cancel_signals_running_query(self) -> None:
        started = threading.Event()

        def cancellable(query, tables, *, cancel):
            started.set()
            if not cancel.wait(5):
                return Table.empty()
            raise QueryCancelled()

        worker = QueryWorker(cancellable)
        worker.submit("slow", {})
        self.assertTrue(started.wait(5))
        self.assertTrue(worker.cancel())
        outcome = worker.wait(timeout=5)
        self.assertIsInstance(outcome.error, QueryCancelled)
        self.assertFalse(worker.cancel())

    def test_unexpected_exception_is_reported_not_raised(self) -> None:
        def broken(query, tables, *, cancel):
            raise RuntimeError("boom")

        worker = QueryWorker(broken)
        with self.assertLogs("tabiew.app.worker", level="ERROR"):
            worker.submit("x", {})
            outcome = worker.wait(timeout=5)
        self.assertIsInstance(outcome.error, RuntimeError)


if __name__ == "__main__":
    unittest.main()
