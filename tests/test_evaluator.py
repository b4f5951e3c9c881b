"""Tests for budget/ - bucket mapping, statuses, totals and recommendations."""

import pytest
from conftest import make_result

from perf_audit.budget import (
    aggregate_status,
    apply_budgets,
    apply_target_budgets,
    calculate_totals,
    check_budgets,
    evaluate_total,
    generate_recommendations,
    map_to_bucket,
    with_deltas,
)
from perf_audit.config import BudgetThreshold, PerfAuditConfig, TargetBudgets
from perf_audit.models import Artifact, Status, Target

KB = 1024


def _client(name, size, compressed=None, status=Status.OK):
    return Artifact(name=name, raw_size=size, target=Target.CLIENT, compressed_size=compressed, status=status)


def _server(name, size):
    return Artifact(name=name, raw_size=size, target=Target.SERVER)


@pytest.fixture
def budgets():
    return TargetBudgets(
        bundles={
            "main": BudgetThreshold(warning=120 * KB, max=150 * KB),
            "vendor": BudgetThreshold(warning=80 * KB, max=100 * KB),
        },
        total=BudgetThreshold(warning=400 * KB, max=500 * KB),
    )


class TestMapToBucket:
    @pytest.mark.parametrize(
        "name, bucket",
        [
            ("main.js", "main"),
            ("index.abc123.js", "main"),
            ("vendor.js", "vendor"),
            ("chunks/chunk-42.js", "vendor"),
            ("runtime.js", "runtime"),
            ("styles.css", "main"),
            ("MAIN.JS", "main"),
        ],
    )
    def test_rules(self, name, bucket):
        assert map_to_bucket(name) == bucket

    def test_first_rule_wins(self):
        """A name matching several rules takes the earliest one."""
        assert map_to_bucket("main-vendor.js") == "main"
        assert map_to_bucket("vendor-runtime.js") == "vendor"


class TestApplyBudgets:
    def test_statuses(self, budgets):
        """Scenario: main 160KB errors, vendor 85KB warns, vendor-chunk 50KB passes."""
        artifacts = [
            _client("main.js", 160 * KB),
            _client("vendor.js", 85 * KB),
            _client("chunk-vendor.js", 50 * KB),
        ]
        evaluated = apply_budgets(artifacts, budgets)
        assert [a.status for a in evaluated] == [Status.ERROR, Status.WARNING, Status.OK]
        assert aggregate_status(evaluated) is Status.ERROR

    def test_inputs_are_not_modified(self, budgets):
        original = _client("main.js", 160 * KB)
        apply_budgets([original], budgets)
        assert original.status is Status.OK

    def test_bucket_without_budget_keeps_status(self, budgets):
        [artifact] = apply_budgets([_client("runtime.js", 10 * 1024 * KB)], budgets)
        assert artifact.status is Status.OK

    def test_boundaries(self, budgets):
        at_warning, at_max = apply_budgets(
            [_client("main.js", 120 * KB), _client("main.js", 150 * KB)], budgets
        )
        assert at_warning.status is Status.WARNING
        assert at_max.status is Status.ERROR

    def test_target_budgets_are_per_target(self):
        config = PerfAuditConfig(target="both")
        evaluated = apply_target_budgets(
            [_client("main.js", 160 * KB), _server("main.js", 160 * KB)], config
        )
        assert evaluated[0].status is Status.ERROR  # client main max 150KB
        assert evaluated[1].status is Status.WARNING  # server main warns at 150KB


class TestAggregateStatus:
    def test_empty_is_ok(self):
        assert aggregate_status([]) is Status.OK

    def test_worst_wins(self):
        artifacts = [_client("a.js", 1, status=Status.WARNING), _client("b.js", 1)]
        assert aggregate_status(artifacts) is Status.WARNING
        assert aggregate_status(artifacts, Status.ERROR) is Status.ERROR


class TestTotals:
    def test_sums(self):
        totals = calculate_totals([_client("a.js", 100, 40), _client("b.js", 50, 20)])
        assert totals.raw_size == 150
        assert totals.compressed_size == 60
        assert totals.count == 2

    def test_compressed_unknown_if_any_missing(self):
        totals = calculate_totals([_client("a.js", 100, 40), _client("b.js", 50)])
        assert totals.compressed_size is None

    def test_evaluate_total(self, budgets):
        assert evaluate_total([_client("a.js", 450 * KB)], budgets) is Status.WARNING
        assert evaluate_total([_client("a.js", 100 * KB)], budgets) is Status.OK

    def test_no_total_budget_is_ok(self):
        assert evaluate_total([_client("a.js", 10**9)], TargetBudgets()) is Status.OK


class TestCheckBudgets:
    def test_total_budget_can_fail_the_report(self):
        """Bundles individually within budget, but the client total exceeds 500KB."""
        config = PerfAuditConfig()
        artifacts = tuple(_client(f"runtime-{i}.js", 110 * KB) for i in range(5))
        result = make_result(*artifacts)

        report = check_budgets(result, config)

        assert result.budget_status is Status.OK
        assert report.total_status[Target.CLIENT] is Status.ERROR
        assert report.status is Status.ERROR
        assert not report.passed
        assert report.violations == ()

    def test_passing_report(self):
        result = make_result(_client("main.js", 10 * KB))
        report = check_budgets(result, PerfAuditConfig())
        assert report.passed
        assert report.totals[Target.CLIENT].raw_size == 10 * KB

    def test_violations_listed(self):
        result = make_result(_client("main.js", 200 * KB, status=Status.ERROR), status=Status.ERROR)
        report = check_budgets(result, PerfAuditConfig())
        assert [a.name for a in report.violations] == ["main.js"]


class TestWithDeltas:
    def test_delta_against_baseline(self):
        current = [_client("main.js", 150), _client("new.js", 10)]
        baseline = [_client("main.js", 100)]
        stamped = with_deltas(current, baseline)
        assert stamped[0].delta == 50
        assert stamped[1].delta is None


class TestRecommendations:
    def test_none_for_small_bundles(self):
        assert generate_recommendations([_client("main.js", 10 * KB)]) == []

    def test_code_splitting(self):
        recs = generate_recommendations([_client("main.js", 151 * KB), _client("a.js", 1)])
        assert recs == ["Consider code splitting for large bundles: main.js"]

    def test_merge_small_chunks_needs_more_than_three(self):
        three = [_client(f"chunk-{i}.js", 2 * KB) for i in range(3)]
        assert generate_recommendations(three) == []

        four = [_client(f"chunk-{i}.js", 2 * KB) for i in range(4)]
        assert generate_recommendations(four) == [
            "Consider merging small chunks to reduce HTTP requests"
        ]

    def test_large_server_bundle(self):
        recs = generate_recommendations([_server("server.js", 201 * KB)])
        assert len(recs) == 1
        assert "server.js" in recs[0]
        assert "server-side dependencies" in recs[0]

    def test_server_size_does_not_trigger_client_rule(self):
        assert generate_recommendations([_server("main.js", 160 * KB)]) == []
