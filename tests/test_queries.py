"""Tests for persistence/queries.py - trend, metric and recommendation aggregates."""

from datetime import datetime, timedelta, timezone

import pytest

from perf_audit.models import Artifact, Target
from perf_audit.persistence import NewBuild, RecommendationRecord, TrendPoint
from perf_audit.persistence.queries import summarize_trend

NOW = datetime(2026, 10, 19, 18, 0, tzinfo=timezone.utc)


def _save(repository, when, *sizes, target=Target.CLIENT, compressed=True, metrics=None, recs=()):
    artifacts = [
        Artifact(
            name=f"bundle-{i}.js",
            raw_size=size,
            target=target,
            compressed_size=size // 3 if compressed else None,
        )
        for i, size in enumerate(sizes)
    ]
    return repository.save_build(
        NewBuild(
            timestamp=when,
            artifacts=artifacts,
            metrics=dict(metrics or {}),
            recommendations=[RecommendationRecord(m) for m in recs],
        )
    )


class TestTrend:
    def test_same_day_builds_are_summed(self, repository):
        """Two builds on one UTC date collapse into one point with summed sizes."""
        _save(repository, NOW - timedelta(hours=6), 1000, 500)
        _save(repository, NOW - timedelta(hours=1), 1200)

        [point] = repository.get_trend_data(days=30, now=NOW)

        assert point.date == "2026-10-19"
        assert point.target is Target.CLIENT
        assert point.raw_size == 2700
        assert point.compressed_size == 1000 // 3 + 500 // 3 + 1200 // 3
        assert point.build_count == 2

    def test_one_point_per_date_and_target(self, repository):
        _save(repository, NOW - timedelta(days=2), 100)
        _save(repository, NOW - timedelta(days=2), 50, target=Target.SERVER)
        _save(repository, NOW, 300)

        points = repository.get_trend_data(days=30, now=NOW)

        assert [(p.date, p.target.value, p.raw_size) for p in points] == [
            ("2026-10-17", "client", 100),
            ("2026-10-17", "server", 50),
            ("2026-10-19", "client", 300),
        ]

    def test_desc_order(self, repository):
        _save(repository, NOW - timedelta(days=3), 100)
        _save(repository, NOW, 300)
        points = repository.get_trend_data(days=30, order="DESC", now=NOW)
        assert [p.date for p in points] == ["2026-10-19", "2026-10-16"]

    def test_window_excludes_old_builds(self, repository):
        _save(repository, NOW - timedelta(days=45), 100)
        _save(repository, NOW - timedelta(days=1), 200)
        points = repository.get_trend_data(days=30, now=NOW)
        assert [p.raw_size for p in points] == [200]

    def test_compressed_unknown_when_any_artifact_unmeasured(self, repository):
        _save(repository, NOW, 100)
        _save(repository, NOW, 200, compressed=False)
        [point] = repository.get_trend_data(days=30, now=NOW)
        assert point.raw_size == 300
        assert point.compressed_size is None

    def test_metrics_keep_max_per_name(self, repository):
        _save(repository, NOW - timedelta(hours=3), 100, metrics={"performance": 70.0, "lcp": 2400})
        _save(repository, NOW - timedelta(hours=1), 100, metrics={"performance": 90.0})

        [point] = repository.get_trend_data(days=30, now=NOW)

        assert point.metrics == {"performance": 90.0, "lcp": 2400.0}

    def test_metrics_only_build_gets_its_own_bucket(self, repository):
        """A build with metrics and no artifacts still shows up in the trend."""
        day = NOW - timedelta(days=1)
        _save(repository, day, 1000)
        _save(repository, day, metrics={"performance_score": 91.0})

        points = repository.get_trend_data(days=30, now=NOW)

        assert [(p.target, p.raw_size, p.build_count) for p in points] == [
            (Target.CLIENT, 1000, 1),
            (None, 0, 1),
        ]
        assert points[0].metrics == {}
        assert points[1].metrics == {"performance_score": 91.0}
        assert points[1].compressed_size is None
        assert points[1].to_dict()["target"] is None

    def test_metrics_only_bucket_follows_date_order(self, repository):
        _save(repository, NOW - timedelta(days=2), metrics={"lcp": 2500})
        _save(repository, NOW, 300)

        points = repository.get_trend_data(days=30, order="DESC", now=NOW)

        assert [(p.date, p.target) for p in points] == [
            ("2026-10-19", Target.CLIENT),
            ("2026-10-17", None),
        ]

    def test_build_without_artifacts_or_metrics_is_not_a_point(self, repository):
        _save(repository, NOW)
        assert repository.get_trend_data(days=30, now=NOW) == []

    def test_empty(self, repository):
        assert repository.get_trend_data(days=30, now=NOW) == []

    def test_to_dict(self, repository):
        _save(repository, NOW, 100)
        [point] = repository.get_trend_data(days=30, now=NOW)
        assert point.to_dict()["target"] == "client"


class TestSummarizeTrend:
    def _point(self, day, size, target=Target.CLIENT):
        return TrendPoint(
            date=f"2026-10-{day:02d}",
            target=target,
            raw_size=size,
            compressed_size=None,
            build_count=1,
        )

    def test_linear_growth(self):
        points = [self._point(d, 1000 + 100 * (d - 1)) for d in (1, 2, 3, 4)]
        [summary] = summarize_trend(points)
        assert summary.slope_bytes_per_day == pytest.approx(100.0)
        assert summary.direction == "growing"
        assert summary.first_size == 1000
        assert summary.last_size == 1300
        assert summary.mean_size == pytest.approx(1150.0)

    def test_gaps_use_calendar_days(self):
        """A 200 byte rise across a ten-day gap is 20 bytes/day, not 200."""
        [summary] = summarize_trend([self._point(1, 1000), self._point(11, 1200)])
        assert summary.slope_bytes_per_day == pytest.approx(20.0)

    def test_shrinking(self):
        [summary] = summarize_trend([self._point(1, 500), self._point(2, 400)])
        assert summary.direction == "shrinking"

    def test_single_point_is_stable(self):
        [summary] = summarize_trend([self._point(5, 500)])
        assert summary.slope_bytes_per_day == 0.0
        assert summary.direction == "stable"

    def test_per_target(self):
        points = [
            self._point(1, 100),
            self._point(2, 200),
            self._point(1, 900, Target.SERVER),
            self._point(2, 800, Target.SERVER),
        ]
        summaries = {s.target: s for s in summarize_trend(points)}
        assert summaries[Target.CLIENT].direction == "growing"
        assert summaries[Target.SERVER].direction == "shrinking"

    def test_unsorted_input(self):
        [summary] = summarize_trend([self._point(3, 300), self._point(1, 100)])
        assert summary.first_size == 100
        assert summary.last_size == 300

    def test_empty(self):
        assert summarize_trend([]) == []

    def test_metric_only_points_are_skipped(self):
        metric_only = TrendPoint(
            date="2026-10-02", target=None, raw_size=0, compressed_size=None, build_count=1
        )
        [summary] = summarize_trend([self._point(1, 100), metric_only, self._point(3, 300)])
        assert summary.points == 2
        assert summary.last_size == 300

    def test_repository_wrapper(self, repository):
        _save(repository, NOW - timedelta(days=2), 1000)
        _save(repository, NOW, 1400)
        [summary] = repository.summarize_trend(days=30, now=NOW)
        assert summary.slope_bytes_per_day == pytest.approx(200.0)


class TestMetricQueries:
    def test_history_newest_first(self, repository):
        old = _save(repository, NOW - timedelta(days=2), 1, metrics={"performance": 80})
        new = _save(repository, NOW - timedelta(days=1), 1, metrics={"performance": 95})
        _save(repository, NOW, 1, metrics={"lcp": 2000})

        history = repository.get_metric_history("performance", days=30, now=NOW)

        assert [(p.build_id, p.value) for p in history] == [(new, 95.0), (old, 80.0)]

    def test_stats(self, repository):
        for value in (70, 80, 90):
            _save(repository, NOW, 1, metrics={"performance": value})
        stats = repository.get_metric_stats("performance", days=30, now=NOW)
        assert stats.count == 3
        assert stats.average == pytest.approx(80.0)
        assert stats.min == 70.0
        assert stats.max == 90.0

    def test_stats_for_unknown_metric(self, repository):
        stats = repository.get_metric_stats("missing", now=NOW)
        assert stats.count == 0
        assert stats.average == 0.0


class TestRecommendationQueries:
    def test_frequent_recommendations(self, repository):
        _save(repository, NOW, 1, recs=["split", "merge"])
        _save(repository, NOW, 1, recs=["split"])
        _save(repository, NOW - timedelta(days=60), 1, recs=["merge", "merge"])

        assert repository.get_frequent_recommendations(days=30, now=NOW) == [
            ("split", 2),
            ("merge", 1),
        ]


class TestArtifactStats:
    def test_stats(self, repository):
        _save(repository, NOW - timedelta(days=1), 100, 300)
        _save(repository, NOW, 200 * 1024)
        _save(repository, NOW - timedelta(days=90), 500 * 1024)

        stats = repository.get_artifact_stats(days=30, now=NOW)

        assert stats.total_builds == 2
        assert stats.average_size == pytest.approx((100 + 300 + 200 * 1024) / 3)
        # Largest artifacts are taken from the whole history
        assert [s.artifact.raw_size for s in stats.largest] == [500 * 1024, 200 * 1024]

    def test_empty(self, repository):
        stats = repository.get_artifact_stats(now=NOW)
        assert stats.total_builds == 0
        assert stats.average_size == 0.0
        assert stats.largest == []
