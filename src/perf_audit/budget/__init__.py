"""Budget evaluation and recommendations."""

from .evaluator import (
    DEFAULT_BUCKET,
    aggregate_status,
    apply_budgets,
    apply_target_budgets,
    calculate_totals,
    check_budgets,
    evaluate_total,
    map_to_bucket,
    with_deltas,
)
from .recommendations import generate_recommendations

__all__ = [
    "DEFAULT_BUCKET",
    "aggregate_status",
    "apply_budgets",
    "apply_target_budgets",
    "calculate_totals",
    "check_budgets",
    "evaluate_total",
    "generate_recommendations",
    "map_to_bucket",
    "with_deltas",
]
