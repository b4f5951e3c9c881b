"""Change detection between analysis results."""

from .engine import alert_type, compare_builds, compare_results, is_significant
from .models import BundleChange, ChangeKind, PerformanceComparison

__all__ = [
    "BundleChange",
    "ChangeKind",
    "PerformanceComparison",
    "alert_type",
    "compare_builds",
    "compare_results",
    "is_significant",
]
