"""Alerts emitted when a scan differs significantly from its baseline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from .diff import BundleChange, PerformanceComparison, alert_type
from .logging_config import get_logger
from .models import AnalysisResult
from .sizes import format_delta, format_size

logger = get_logger(__name__)


@dataclass(frozen=True)
class PerformanceAlert:
    type: str  # "regression" | "improvement"
    changes: tuple[BundleChange, ...]
    result: AnalysisResult

    def summary(self) -> str:
        net = sum(c.delta for c in self.changes)
        label = "Bundle size regression" if self.type == "regression" else "Bundle size improvement"
        return f"{label}: {len(self.changes)} change(s), net {format_delta(net)}"

    def lines(self) -> list[str]:
        out = []
        for c in self.changes:
            out.append(
                f"{c.name}: {format_size(c.previous_size)} -> {format_size(c.current_size)} "
                f"({format_delta(c.delta)}, {c.percent:+.1f}%)"
            )
        return out


def build_alert(
    comparison: PerformanceComparison, result: AnalysisResult
) -> Optional[PerformanceAlert]:
    """Alert for a comparison, or None when nothing significant changed."""
    kind = alert_type(comparison)
    if kind is None:
        return None
    return PerformanceAlert(type=kind, changes=comparison.changes, result=result)


class Notifier(Protocol):
    def notify(self, alert: PerformanceAlert) -> None: ...


class LogNotifier:
    """Writes alerts to the perf_audit logger."""

    def notify(self, alert: PerformanceAlert) -> None:
        if alert.type == "regression":
            logger.warning(alert.summary())
        else:
            logger.info(alert.summary())
        for line in alert.lines():
            logger.info(f"  {line}")
