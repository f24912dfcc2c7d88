"""Per-view components that receive dispatched events."""

from .cause_panel import CausePanel
from .dependents_panel import DependentsPanel
from .file_panel import FilePanel
from .navigator import DependencyChainNavigator

__all__ = ["CausePanel", "DependentsPanel", "FilePanel", "DependencyChainNavigator"]
