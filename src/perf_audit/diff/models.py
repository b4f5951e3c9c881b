"""Data models for change detection between two analysis results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..models import Target


class ChangeKind(str, Enum):
    """How an artifact differs between baseline and current."""

    CHANGED = "changed"  # present on both sides
    ADDED = "added"  # only in current
    REMOVED = "removed"  # only in baseline


@dataclass(frozen=True)
class BundleChange:
    """One reported per-artifact size change."""

    name: str
    target: Optional[Target]
    previous_size: int
    current_size: int
    delta: int  # current - previous
    percent: float
    is_regression: bool
    kind: ChangeKind = ChangeKind.CHANGED

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "target": self.target.value if self.target is not None else None,
            "previous_size": self.previous_size,
            "current_size": self.current_size,
            "delta": self.delta,
            "percent": round(self.percent, 2),
            "is_regression": self.is_regression,
            "kind": self.kind.value,
        }


@dataclass(frozen=True)
class PerformanceComparison:
    """Significant changes between a baseline and a current result.

    Roll-ups are computed over the reported changes only, never over
    artifacts that fell below the significance thresholds.
    """

    changes: tuple[BundleChange, ...] = field(default_factory=tuple)

    @property
    def has_regression(self) -> bool:
        return any(c.is_regression for c in self.changes)

    @property
    def has_improvement(self) -> bool:
        return any(not c.is_regression for c in self.changes)

    @property
    def total_delta(self) -> int:
        return sum(c.delta for c in self.changes)

    @property
    def regressions(self) -> tuple[BundleChange, ...]:
        return tuple(c for c in self.changes if c.is_regression)

    @property
    def improvements(self) -> tuple[BundleChange, ...]:
        return tuple(c for c in self.changes if not c.is_regression)

    def __bool__(self) -> bool:
        return bool(self.changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_regression": self.has_regression,
            "has_improvement": self.has_improvement,
            "total_delta": self.total_delta,
            "changes": [c.to_dict() for c in self.changes],
        }
