"""File watcher feeding the orchestrator, and the signal-aware watch session."""

from __future__ import annotations

import queue
import signal
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Optional

from watchfiles import watch

from ..audit import BundleAudit
from ..config import PerfAuditConfig
from ..logging_config import get_logger
from ..persistence import BuildRepository
from ..scanning import is_artifact
from .orchestrator import ScanCallback, WatchOrchestrator

logger = get_logger(__name__)

# watchfiles' own coalescing window; the orchestrator applies the real debounce
WATCH_DEBOUNCE_MS = 200


def _existing_root(path: Path) -> Path:
    """Nearest existing ancestor of *path*, so a not-yet-built output dir can be watched."""
    current = path
    while not current.exists() and current != current.parent:
        current = current.parent
    return current


class _BundleFilter:
    """watchfiles filter: bundle files inside the output dirs, anything inside extra paths."""

    def __init__(self, output_dirs: Iterable[Path], extra_paths: Iterable[Path] = ()) -> None:
        self.output_dirs = [p.resolve() for p in output_dirs]
        self.extra_paths = [p.resolve() for p in extra_paths]

    def __call__(self, change: Any, path: str) -> bool:
        p = Path(path).resolve()
        if any(_is_within(p, root) for root in self.extra_paths):
            return True
        return is_artifact(p) and any(_is_within(p, root) for root in self.output_dirs)


def _is_within(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
        return True
    except ValueError:
        return False


class ChangeWatcher:
    """Background producer: pushes each batch of changed paths onto a queue."""

    def __init__(
        self,
        output_dirs: Iterable[str],
        events: "queue.Queue[Any]",
        extra_paths: Iterable[str] = (),
    ) -> None:
        self.output_dirs = [Path(p) for p in output_dirs]
        self.extra_paths = [Path(p) for p in extra_paths]
        self.events = events

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def roots(self) -> list[str]:
        found = {str(_existing_root(p.resolve())) for p in [*self.output_dirs, *self.extra_paths]}
        return sorted(found)

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self._watch_loop,
            name="perf-audit-watcher",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        logger.debug("Stopping watcher thread...")
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            if self._thread.is_alive():
                logger.warning("Watcher thread did not exit cleanly within 5 seconds")

    def _watch_loop(self) -> None:
        roots = self.roots
        logger.info("Watching %s for changes", ", ".join(roots))
        for changes in watch(
            *roots,
            stop_event=self._stop_event,
            debounce=WATCH_DEBOUNCE_MS,
            rust_timeout=5000,
            watch_filter=_BundleFilter(self.output_dirs, self.extra_paths),
        ):
            if self._stop_event.is_set():
                break
            self.events.put(sorted(path for _change, path in changes))


class WatchSession:
    """Wires audit, repository, orchestrator and watcher for ``perf-audit watch``.

    SIGINT/SIGTERM stop the consumer loop. Shutdown closes the repository
    first, then stops the watcher thread, and runs exactly once.
    """

    def __init__(
        self,
        config: PerfAuditConfig,
        repository: BuildRepository,
        audit: Optional[BundleAudit] = None,
        on_scan: Optional[ScanCallback] = None,
    ) -> None:
        self.config = config
        self.repository = repository
        self.audit = audit or BundleAudit(config)
        self.events: "queue.Queue[Any]" = queue.Queue()
        self.stop_event = threading.Event()

        persist = self._persist if config.save_history else None
        self.orchestrator = WatchOrchestrator(
            scan=self.audit.run,
            persist=persist,
            thresholds=config.thresholds,
            debounce_seconds=config.debounce_seconds,
            hooks=self.audit.hooks,
            on_scan=on_scan,
        )
        self.watcher = ChangeWatcher(
            [config.output_path(t) for t in config.targets],
            self.events,
            extra_paths=config.watch_paths,
        )

        self._shutdown_lock = threading.Lock()
        self._shutdown_complete = False
        self._original_handlers: dict[int, Any] = {}

    def _persist(self, result) -> Optional[int]:
        return self.audit.save(self.repository, result)

    def _handle_signal(self, signum, frame) -> None:
        logger.info("Received signal %s, stopping watch mode", signum)
        self.stop_event.set()
        # Wake the consumer without waiting for its poll timeout
        self.events.put(None)

    def install_signal_handlers(self) -> None:
        for signum in (signal.SIGINT, signal.SIGTERM):
            self._original_handlers[signum] = signal.getsignal(signum)
            signal.signal(signum, self._handle_signal)

    def restore_signal_handlers(self) -> None:
        for signum, handler in self._original_handlers.items():
            signal.signal(signum, handler)
        self._original_handlers.clear()

    def run(self) -> None:
        """Initial scan, then consume events until interrupted."""
        self.install_signal_handlers()
        try:
            if not self.orchestrator.start():
                logger.warning("Initial scan produced no baseline; waiting for changes")
            self.watcher.start()
            self.orchestrator.run(self.events, self.stop_event)
        finally:
            self.shutdown()
            self.restore_signal_handlers()

    def shutdown(self) -> None:
        """Close history, then stop watching. Safe to call multiple times."""
        with self._shutdown_lock:
            if self._shutdown_complete:
                return
            self._shutdown_complete = True

        self.stop_event.set()
        self.repository.close()
        self.watcher.stop()
        logger.info(
            "Watch stopped after %d scan(s), %d failure(s)",
            self.orchestrator.scan_count,
            self.orchestrator.failure_count,
        )
