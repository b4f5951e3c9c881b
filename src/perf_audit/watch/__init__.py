"""Watch mode: re-scan on build output changes and compare against a baseline."""

from .orchestrator import WatchOrchestrator, WatchState
from .watcher import ChangeWatcher, WatchSession

__all__ = ["ChangeWatcher", "WatchOrchestrator", "WatchSession", "WatchState"]
