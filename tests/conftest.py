"""Shared fixtures for perf-audit tests."""

from pathlib import Path

import pytest

from perf_audit.config import PerfAuditConfig
from perf_audit.models import AnalysisResult, Artifact, Status, Target
from perf_audit.persistence import BuildRepository


def write_bundle(root: Path, name: str, size: int, fill: bytes = b"a") -> Path:
    """Create ``root/name`` with exactly *size* bytes."""
    path = root / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes((fill * size)[:size])
    return path


def make_result(*artifacts, timestamp="2026-10-01T12:00:00.000Z", status=Status.OK, target="client"):
    """Result from ``(name, size)`` pairs or ready-made artifacts."""
    items = []
    for a in artifacts:
        if isinstance(a, Artifact):
            items.append(a)
        else:
            name, size = a
            items.append(Artifact(name=name, raw_size=size, target=Target.CLIENT))
    return AnalysisResult(
        timestamp=timestamp,
        artifacts=tuple(items),
        budget_status=status,
        analysis_target=target,
    )


@pytest.fixture
def dist(tmp_path):
    """Empty client output directory."""
    root = tmp_path / "dist"
    root.mkdir()
    return root


@pytest.fixture
def config(tmp_path, dist):
    """Config pointing every path into tmp_path."""
    return PerfAuditConfig(
        client_output_path=str(dist),
        server_output_path=str(tmp_path / "server"),
        database_path=str(tmp_path / ".perf-audit" / "performance.db"),
    )


@pytest.fixture
def repository(tmp_path):
    """Open history repository on a fresh database file."""
    repo = BuildRepository(tmp_path / "history.db")
    repo.open()
    yield repo
    repo.close()
