"""Per-tab view state."""

from .state import FilterSpec, SortSpec, ViewState

__all__ = ["FilterSpec", "SortSpec", "ViewState"]
