"""Watch-mode state machine: debounce, scan, persist, compare, alert.

States are ``IDLE -> SCANNING -> IDLE``. A change event starts a scan only
when the orchestrator is idle and at least ``debounce_seconds`` have passed
since the previous scan *started*; otherwise the event is dropped. Bursts
therefore collapse to at most one scan per interval, and no event is
replayed later.

The baseline only moves forward on a successful scan: it is adopted when
there is none, and replaced when the new scan differs significantly.
"""

from __future__ import annotations

import queue
import threading
import time
from enum import Enum
from typing import Any, Callable, Optional

from ..config import ChangeThresholds
from ..diff import PerformanceComparison, compare_results
from ..hooks import HookEvent, HookRegistry, OnError
from ..logging_config import get_logger
from ..models import AnalysisResult
from ..notifications import LogNotifier, Notifier, build_alert

logger = get_logger(__name__)

ScanFn = Callable[[], AnalysisResult]
PersistFn = Callable[[AnalysisResult], Optional[int]]
ScanCallback = Callable[[AnalysisResult, Optional[PerformanceComparison]], None]


class WatchState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"


class WatchOrchestrator:
    """Single-consumer driver for watch mode.

    Args:
        scan: Produces a fresh evaluated result (usually ``BundleAudit.run``)
        persist: Stores a result; failures must be handled inside
        thresholds: Significance filter for baseline comparisons
        debounce_seconds: Minimum gap between two scan starts
        notifier: Receives alerts for significant changes
        hooks: Receives ``on_error`` for failed scans
        on_scan: Called after every successful scan with its comparison
            (``None`` when there was no baseline to compare against)
        clock: Monotonic time source
    """

    def __init__(
        self,
        scan: ScanFn,
        persist: Optional[PersistFn] = None,
        thresholds: Optional[ChangeThresholds] = None,
        debounce_seconds: float = 1.0,
        notifier: Optional[Notifier] = None,
        hooks: Optional[HookRegistry] = None,
        on_scan: Optional[ScanCallback] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._scan = scan
        self._persist = persist
        self.thresholds = thresholds or ChangeThresholds()
        self.debounce_seconds = debounce_seconds
        self.notifier = notifier or LogNotifier()
        self.hooks = hooks or HookRegistry()
        self._on_scan = on_scan
        self._clock = clock

        self._lock = threading.Lock()
        self._state = WatchState.IDLE
        self._last_scan_started: Optional[float] = None
        self.baseline: Optional[AnalysisResult] = None
        self.scan_count = 0
        self.failure_count = 0

    @property
    def state(self) -> WatchState:
        return self._state

    @property
    def is_scanning(self) -> bool:
        return self._state is WatchState.SCANNING

    # ── transitions ───────────────────────────────────────────────────

    def _try_begin(self, force: bool = False) -> bool:
        """Atomically move IDLE -> SCANNING if the debounce window allows."""
        with self._lock:
            if self._state is WatchState.SCANNING:
                return False
            now = self._clock()
            if (
                not force
                and self._last_scan_started is not None
                and now - self._last_scan_started < self.debounce_seconds
            ):
                return False
            self._state = WatchState.SCANNING
            self._last_scan_started = now
            return True

    def _finish(self) -> None:
        with self._lock:
            self._state = WatchState.IDLE

    # ── entry points ──────────────────────────────────────────────────

    def start(self) -> bool:
        """Run the initial scan. Returns True if a baseline was set."""
        if not self._try_begin(force=True):
            return False
        self._run_cycle()
        return self.baseline is not None

    def handle_change(self, changes: Any = None) -> bool:
        """React to one file-system event. Returns True if a scan ran."""
        if not self._try_begin():
            logger.debug("Change ignored (scan in progress or within debounce window)")
            return False
        if changes:
            logger.info(f"Detected {len(changes)} changed file(s), re-analyzing...")
        self._run_cycle()
        return True

    def run(self, events: "queue.Queue[Any]", stop_event: threading.Event, poll: float = 0.2) -> None:
        """Consume change events until *stop_event* is set or ``None`` arrives."""
        while not stop_event.is_set():
            try:
                item = events.get(timeout=poll)
            except queue.Empty:
                continue
            if item is None:
                break
            try:
                self.handle_change(item)
            except Exception:
                # Scan errors are handled in the cycle; this is persist/notify/render
                logger.exception("Watch cycle failed after scanning")

    # ── scan cycle ────────────────────────────────────────────────────

    def _run_cycle(self) -> None:
        try:
            try:
                result = self._scan()
            except Exception as e:
                self.failure_count += 1
                logger.exception("Watch scan failed; keeping previous baseline")
                self.hooks.emit(HookEvent.ON_ERROR, OnError(error=e, context="watch"))
                return

            self.scan_count += 1
            if self._persist is not None:
                self._persist(result)

            comparison = self._compare(result)
            if self._on_scan is not None:
                self._on_scan(result, comparison)
        finally:
            self._finish()

    def _compare(self, result: AnalysisResult) -> Optional[PerformanceComparison]:
        if self.baseline is None:
            self.baseline = result
            logger.info(f"Baseline set: {len(result.artifacts)} artifacts")
            return None

        comparison = compare_results(self.baseline, result, self.thresholds)
        if comparison:
            alert = build_alert(comparison, result)
            if alert is not None:
                self.notifier.notify(alert)
            self.baseline = result
        else:
            logger.debug("No significant changes against baseline")
        return comparison
