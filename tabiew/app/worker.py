"""Background query execution.

One query runs at a time on a daemon thread, against a read-only snapshot
of the registry. Results come back through a queue that the application
drains on its tick, so the worker never touches registry or view state.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from ..errors import CommandError, QueryError
from ..query import execute
from ..table import Table

logger = logging.getLogger(__name__)

Executor = Callable[..., Table]


@dataclass(frozen=True)
class QueryOutcome:
    generation: int
    query: str
    table: Table | None = None
    error: Exception | None = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None and self.table is not None


class QueryWorker:
    def __init__(self, executor: Executor = execute) -> None:
        self._executor = executor
        self._results: queue.Queue[QueryOutcome] = queue.Queue()
        self._lock = threading.Lock()
        self._generation = 0
        self._pending: str | None = None
        self._cancel: threading.Event | None = None

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._pending is not None

    @property
    def pending_query(self) -> str | None:
        with self._lock:
            return self._pending

    def submit(self, query: str, tables: Mapping[str, Table]) -> int:
        """Start ``query`` in the background; only one may be in flight."""
        with self._lock:
            if self._pending is not None:
                raise CommandError("a query is already running (Esc cancels it)")
            self._generation += 1
            generation = self._generation
            self._pending = query
            cancel = threading.Event()
            self._cancel = cancel

        worker = threading.Thread(
            target=self._run,
            args=(generation, query, tables, cancel),
            name="tabiew-query",
            daemon=True,
        )
        worker.start()
        return generation

    def _run(self, generation: int, query: str, tables: Mapping[str, Table], cancel: threading.Event) -> None:
        started = time.monotonic()
        try:
            table = self._executor(query, tables, cancel=cancel)
            outcome = QueryOutcome(generation, query, table=table, elapsed=time.monotonic() - started)
        except QueryError as exc:
            outcome = QueryOutcome(generation, query, error=exc, elapsed=time.monotonic() - started)
        except Exception as exc:
            logger.exception("query worker failed for %r", query)
            outcome = QueryOutcome(generation, query, error=exc, elapsed=time.monotonic() - started)
        self._results.put(outcome)

    def cancel(self) -> bool:
        """Signal the running query to stop; returns whether one was running."""
        with self._lock:
            if self._pending is None or self._cancel is None:
                return False
            self._cancel.set()
            return True

    def _take(self, outcome: QueryOutcome) -> QueryOutcome | None:
        with self._lock:
            if outcome.generation != self._generation:
                return None
            self._pending = None
            self._cancel = None
        return outcome

    def poll(self) -> QueryOutcome | None:
        """Return a finished outcome without blocking, if one is ready."""
        while True:
            try:
                outcome = self._results.get_nowait()
            except queue.Empty:
                return None
            taken = self._take(outcome)
            if taken is not None:
                return taken

    def wait(self, timeout: float | None = None) -> QueryOutcome | None:
        """Block until the current query finishes (used by tests and shutdown)."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            try:
                outcome = self._results.get(timeout=remaining)
            except queue.Empty:
                return None
            taken = self._take(outcome)
            if taken is not None:
                return taken


__all__ = ["QueryOutcome", "QueryWorker"]
