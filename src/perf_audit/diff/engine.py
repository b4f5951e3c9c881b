"""Change detection: which artifacts moved between two analysis results.

The algorithm works in two passes:
  1. Current side: artifacts also in the baseline are diffed and kept only
     if significant; artifacts missing from the baseline are always kept
     as regressions.
  2. Baseline side: artifacts missing from current are always kept as
     improvements.

Significance is ``|delta| > min_absolute_bytes OR |percent| > min_percent``,
so a small bundle that doubles and a large bundle that grows by a fixed
amount are both caught.

The same function backs live watch-mode comparisons and comparisons of two
stored builds; only the source of the baseline differs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal, Optional

from ..config import ChangeThresholds
from ..models import AnalysisResult, Artifact
from .models import BundleChange, ChangeKind, PerformanceComparison

if TYPE_CHECKING:
    from ..persistence.repository import BuildRepository

AlertType = Literal["regression", "improvement"]


def _by_name(artifacts) -> dict[str, Artifact]:
    # Cross-target name collisions are not expected; last write wins
    return {a.name: a for a in artifacts}


def _percent(delta: int, previous: int) -> float:
    if previous == 0:
        return 100.0 if delta > 0 else 0.0
    return delta / previous * 100


def is_significant(delta: int, percent: float, thresholds: ChangeThresholds) -> bool:
    return abs(delta) > thresholds.min_absolute_bytes or abs(percent) > thresholds.min_percent


def compare_results(
    baseline: AnalysisResult,
    current: AnalysisResult,
    thresholds: Optional[ChangeThresholds] = None,
) -> PerformanceComparison:
    """Diff *current* against *baseline*. Neither input is modified."""
    thresholds = thresholds or ChangeThresholds()
    base_map = _by_name(baseline.artifacts)
    curr_map = _by_name(current.artifacts)

    changes: list[BundleChange] = []

    for name, artifact in curr_map.items():
        previous = base_map.get(name)
        if previous is None:
            changes.append(
                BundleChange(
                    name=name,
                    target=artifact.target,
                    previous_size=0,
                    current_size=artifact.raw_size,
                    delta=artifact.raw_size,
                    percent=100.0,
                    is_regression=True,
                    kind=ChangeKind.ADDED,
                )
            )
            continue

        delta = artifact.raw_size - previous.raw_size
        percent = _percent(delta, previous.raw_size)
        if not is_significant(delta, percent, thresholds):
            continue
        changes.append(
            BundleChange(
                name=name,
                target=artifact.target,
                previous_size=previous.raw_size,
                current_size=artifact.raw_size,
                delta=delta,
                percent=percent,
                is_regression=delta > 0,
            )
        )

    for name, artifact in base_map.items():
        if name in curr_map:
            continue
        changes.append(
            BundleChange(
                name=name,
                target=artifact.target,
                previous_size=artifact.raw_size,
                current_size=0,
                delta=-artifact.raw_size,
                percent=-100.0,
                is_regression=False,
                kind=ChangeKind.REMOVED,
            )
        )

    return PerformanceComparison(changes=tuple(changes))


def compare_builds(
    repository: "BuildRepository",
    baseline_id: int,
    current_id: int,
    thresholds: Optional[ChangeThresholds] = None,
) -> PerformanceComparison:
    """Run :func:`compare_results` on two stored builds.

    Raises:
        BuildNotFoundError: If either id does not exist.
    """
    baseline = repository.load_build(baseline_id).to_result()
    current = repository.load_build(current_id).to_result()
    return compare_results(baseline, current, thresholds)


def alert_type(comparison: PerformanceComparison) -> Optional[AlertType]:
    """``regression`` if anything grew, ``improvement`` if only shrinkage, else None."""
    if comparison.has_regression:
        return "regression"
    if comparison.has_improvement:
        return "improvement"
    return None
