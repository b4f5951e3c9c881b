"""Historical comparison of two stored builds.

Unlike change detection, names present on only one side are left out:
this view answers "how did the artifacts we still ship move", not "what
should fail CI".
"""

import sqlite3

from .models import ArtifactDiff, BuildComparison, MetricDiff
from .reader import load_build


def get_comparison(conn: sqlite3.Connection, build_id1: int, build_id2: int) -> BuildComparison:
    """Diff artifacts and metrics of *build_id1* (old) against *build_id2* (new).

    Raises
    ------
    BuildNotFoundError
        If either build does not exist.
    """
    old = load_build(conn, build_id1)
    new = load_build(conn, build_id2)

    old_artifacts = {a.name: a for a in old.artifacts}
    new_artifacts = {a.name: a for a in new.artifacts}

    artifact_diffs = []
    for name, before in old_artifacts.items():
        after = new_artifacts.get(name)
        if after is None:
            continue
        if before.compressed_size is not None and after.compressed_size is not None:
            compressed_delta = after.compressed_size - before.compressed_size
        else:
            compressed_delta = None
        artifact_diffs.append(
            ArtifactDiff(
                name=name,
                old_size=before.raw_size,
                new_size=after.raw_size,
                delta=after.raw_size - before.raw_size,
                old_compressed_size=before.compressed_size,
                new_compressed_size=after.compressed_size,
                compressed_delta=compressed_delta,
            )
        )

    metric_diffs = [
        MetricDiff(
            name=name,
            old_value=value,
            new_value=new.metrics[name],
            delta=new.metrics[name] - value,
        )
        for name, value in old.metrics.items()
        if name in new.metrics
    ]

    return BuildComparison(
        build1=old.build,
        build2=new.build,
        artifacts=artifact_diffs,
        metrics=metric_diffs,
    )
