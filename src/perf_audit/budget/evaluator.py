"""Budget evaluation: bucket mapping, per-artifact status, totals."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import TYPE_CHECKING, Optional

from ..logging_config import get_logger
from ..models import AnalysisResult, Artifact, BudgetReport, Status, Target, Totals
from ..sizes import classify

if TYPE_CHECKING:
    from ..config import PerfAuditConfig, TargetBudgets

logger = get_logger(__name__)

# Substring rules in priority order; first hit wins
_BUCKET_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("main", ("main", "index")),
    ("vendor", ("vendor", "chunk")),
    ("runtime", ("runtime",)),
)

DEFAULT_BUCKET = "main"


def map_to_bucket(name: str) -> str:
    """Resolve the budget bucket for an artifact name. Never returns None."""
    lowered = name.lower()
    for bucket, needles in _BUCKET_RULES:
        if any(needle in lowered for needle in needles):
            return bucket
    return DEFAULT_BUCKET


def apply_budgets(artifacts: Iterable[Artifact], budgets: "TargetBudgets") -> list[Artifact]:
    """Return copies of *artifacts* with status set from their bucket's thresholds.

    Artifacts whose bucket has no configured budget keep their status.
    """
    evaluated = []
    for artifact in artifacts:
        threshold = budgets.get(map_to_bucket(artifact.name))
        if threshold is None:
            evaluated.append(artifact)
            continue
        status = classify(artifact.raw_size, threshold.warning, threshold.max)
        evaluated.append(artifact.with_status(status))
    return evaluated


def apply_target_budgets(
    artifacts: Iterable[Artifact], config: "PerfAuditConfig"
) -> list[Artifact]:
    """Apply each artifact's own target budgets (client or server)."""
    evaluated = []
    for artifact in artifacts:
        evaluated.extend(apply_budgets([artifact], config.budgets_for(artifact.target)))
    return evaluated


def aggregate_status(artifacts: Iterable[Artifact], *extra: Status) -> Status:
    """Worst status across *artifacts* and any *extra* statuses; OK when empty."""
    return Status.worst([*(a.status for a in artifacts), *extra])


def calculate_totals(artifacts: Sequence[Artifact]) -> Totals:
    """Sum raw sizes, and compressed sizes only when every artifact has one."""
    raw = sum(a.raw_size for a in artifacts)
    compressed: Optional[int] = None
    if artifacts and all(a.compressed_size is not None for a in artifacts):
        compressed = sum(a.compressed_size for a in artifacts)
    return Totals(raw_size=raw, compressed_size=compressed, count=len(artifacts))


def evaluate_total(artifacts: Sequence[Artifact], budgets: "TargetBudgets") -> Status:
    """Classify the summed raw size against the ``total`` budget, if configured."""
    if budgets.total is None:
        return Status.OK
    total = calculate_totals(artifacts).raw_size
    return classify(total, budgets.total.warning, budgets.total.max)


def check_budgets(result: AnalysisResult, config: "PerfAuditConfig") -> BudgetReport:
    """Combine artifact statuses with per-target total budget checks."""
    total_status: dict[Target, Status] = {}
    totals: dict[Target, Totals] = {}

    for target in config.targets:
        subset = [a for a in result.artifacts if a.target is target]
        totals[target] = calculate_totals(subset)
        total_status[target] = evaluate_total(subset, config.budgets_for(target))
        if total_status[target] is not Status.OK:
            logger.info(f"{target.value} total budget: {total_status[target].value}")

    return BudgetReport(result=result, total_status=total_status, totals=totals)


def with_deltas(current: Sequence[Artifact], baseline: Sequence[Artifact]) -> list[Artifact]:
    """Copies of *current* carrying ``delta`` against same-named *baseline* artifacts."""
    previous = {(a.target, a.name): a.raw_size for a in baseline}
    out = []
    for artifact in current:
        before = previous.get((artifact.target, artifact.name))
        out.append(replace(artifact, delta=None if before is None else artifact.raw_size - before))
    return out
