"""
perf-audit - bundle size budgets and performance trends for frontend builds

Scans build output, classifies every bundle against per-target size budgets,
flags regressions against a baseline and keeps a queryable build history.
"""

__version__ = "0.3.0"

from .audit import BundleAudit, save_result
from .config import PerfAuditConfig, load_config
from .diff import compare_results
from .models import AnalysisResult, Artifact, Status, Target
from .persistence import BuildRepository

__all__ = [
    "AnalysisResult",
    "Artifact",
    "BuildRepository",
    "BundleAudit",
    "PerfAuditConfig",
    "Status",
    "Target",
    "compare_results",
    "load_config",
    "save_result",
]
