"""Audit pipeline: scan, evaluate budgets, recommend, persist.

``BundleAudit.run()`` is what the ``analyze``, ``budget`` and ``watch``
commands call. ``save_result()`` is the persistence boundary: a failed
history write is logged and never aborts an otherwise good analysis.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from .budget import aggregate_status, apply_target_budgets, generate_recommendations, with_deltas
from .ci import CIContext, detect_ci_environment
from .config import PerfAuditConfig
from .exceptions import PersistenceError
from .hooks import (
    AfterPersist,
    AfterScan,
    BeforePersist,
    BeforeScan,
    HookEvent,
    HookRegistry,
    OnError,
)
from .logging_config import get_logger
from .models import AnalysisResult, Artifact, Target
from .persistence import BuildRepository, NewBuild
from .scanning import ArtifactScanner

logger = get_logger(__name__)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


class BundleAudit:
    """Runs one analysis of the configured targets.

    Args:
        config: Loaded configuration
        hooks: Optional hook registry; an empty one is used otherwise
        cwd: Directory ignore globs are relative to (default: process cwd)
        clock: Returns the ISO-8601 timestamp stamped on each result
    """

    def __init__(
        self,
        config: PerfAuditConfig,
        hooks: Optional[HookRegistry] = None,
        cwd: Optional[Path] = None,
        clock: Optional[Callable[[], str]] = None,
    ) -> None:
        self.config = config
        self.hooks = hooks or HookRegistry()
        self.cwd = cwd
        self._clock = clock or _utc_timestamp

    def scanner_for(self, target: Target) -> ArtifactScanner:
        root = Path(self.config.output_path(target)).resolve()
        nested = [
            self.config.output_path(other)
            for other in self.config.targets
            if other is not target
            and root in Path(self.config.output_path(other)).resolve().parents
        ]
        return ArtifactScanner(
            self.config.output_path(target),
            target,
            compress=self.config.gzip,
            ignore_paths=self.config.ignore_paths,
            cwd=self.cwd,
            exclude_dirs=nested,
        )

    def scan(self) -> list[Artifact]:
        """Scan every configured target. Client artifacts come first.

        Raises:
            FileAccessError: If any artifact cannot be measured
        """
        targets = self.config.targets
        self.hooks.emit(
            HookEvent.BEFORE_SCAN,
            BeforeScan(
                targets=targets,
                output_paths={t: self.config.output_path(t) for t in targets},
            ),
        )

        try:
            if len(targets) == 1:
                artifacts = self.scanner_for(targets[0]).scan()
            else:
                # Disjoint output directories, no shared state
                with ThreadPoolExecutor(max_workers=2) as executor:
                    futures = [executor.submit(self.scanner_for(t).scan) for t in targets]
                    artifacts = [a for future in futures for a in future.result()]
        except Exception as e:
            self.hooks.emit(HookEvent.ON_ERROR, OnError(error=e, context="scan"))
            raise

        self.hooks.emit(HookEvent.AFTER_SCAN, AfterScan(artifacts=tuple(artifacts)))
        return artifacts

    def evaluate(self, artifacts: list[Artifact]) -> AnalysisResult:
        """Apply budgets and build the immutable result."""
        evaluated = apply_target_budgets(artifacts, self.config)
        return AnalysisResult(
            timestamp=self._clock(),
            artifacts=tuple(evaluated),
            budget_status=aggregate_status(evaluated),
            recommendations=tuple(generate_recommendations(evaluated)),
            analysis_target=self.config.target,
        )

    def run(self) -> AnalysisResult:
        result = self.evaluate(self.scan())
        logger.debug(
            f"Analysis complete: {len(result.artifacts)} artifacts, status {result.budget_status.value}"
        )
        return result

    def attach_deltas(self, repository: BuildRepository, result: AnalysisResult) -> AnalysisResult:
        """Stamp each artifact's ``delta`` against the newest stored build.

        History read failures leave the result unchanged.
        """
        try:
            recent = repository.find_recent(limit=1)
            if not recent:
                return result
            previous = repository.load_build(recent[0].id)
        except PersistenceError as e:
            logger.warning(f"Could not read previous build: {e}")
            return result
        return replace(result, artifacts=tuple(with_deltas(result.artifacts, previous.artifacts)))

    def save(
        self,
        repository: BuildRepository,
        result: AnalysisResult,
        metrics: Optional[dict[str, float]] = None,
        url: Optional[str] = None,
        device: Optional[str] = None,
        ci: Optional[CIContext] = None,
    ) -> Optional[int]:
        return save_result(
            repository, result, metrics=metrics, url=url, device=device, ci=ci, hooks=self.hooks
        )


def save_result(
    repository: BuildRepository,
    result: AnalysisResult,
    metrics: Optional[dict[str, float]] = None,
    url: Optional[str] = None,
    device: Optional[str] = None,
    ci: Optional[CIContext] = None,
    hooks: Optional[HookRegistry] = None,
) -> Optional[int]:
    """Persist *result* as a build.

    Args:
        repository: The process's history handle
        result: Evaluated analysis result
        metrics: Opaque ``{name: value}`` bag, e.g. page-load scores
        url: Audited page URL, if any
        device: Audited device profile, if any
        ci: CI context; detected from the environment when omitted
        hooks: Registry to notify before and after the write

    Returns:
        The new build id, or None if the write failed
    """
    hooks = hooks or HookRegistry()
    ci = ci or detect_ci_environment()

    hooks.emit(HookEvent.BEFORE_PERSIST, BeforePersist(result=result))

    build = NewBuild.from_result(
        result,
        metrics=metrics,
        branch=ci.branch,
        commit_hash=ci.commit_hash,
        url=url,
        device=device,
    )

    build_id: Optional[int]
    try:
        build_id = repository.save_build(build)
        logger.debug(f"Build saved with id {build_id}")
    except PersistenceError as e:
        logger.warning(f"Failed to save build to history: {e}")
        hooks.emit(HookEvent.ON_ERROR, OnError(error=e, context="persist"))
        build_id = None

    hooks.emit(HookEvent.AFTER_PERSIST, AfterPersist(result=result, build_id=build_id))
    return build_id
