"""Application state machine, tabs and the background query worker."""

from .machine import App
from .modes import CommandMode, ConfirmMode, Mode, NormalMode, SearchMode
from .snapshot import AppSnapshot
from .state import StatusBar, Tab, TabKind
from .worker import QueryOutcome, QueryWorker

__all__ = [
    "App",
    "AppSnapshot",
    "CommandMode",
    "ConfirmMode",
    "Mode",
    "NormalMode",
    "SearchMode",
    "StatusBar",
    "Tab",
    "TabKind",
    "QueryOutcome",
    "QueryWorker",
]
