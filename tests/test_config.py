"""Tests for config.py - budget parsing, validation and source merging."""

import os

import pytest

from perf_audit.config import (
    BudgetThreshold,
    ChangeThresholds,
    PerfAuditConfig,
    load_config,
    parse_target_budgets,
)
from perf_audit.exceptions import (
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
    InvalidSizeError,
    UnknownBudgetError,
)
from perf_audit.models import Target


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run in an empty cwd with no home config and no PERF_AUDIT_* vars."""
    home = tmp_path / "home"
    home.mkdir()
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    for key in list(os.environ):
        if key.startswith("PERF_AUDIT_"):
            monkeypatch.delenv(key)
    return work


class TestBudgetThreshold:
    def test_from_strings(self):
        t = BudgetThreshold.from_strings("150KB", "120KB")
        assert t.max == 150 * 1024
        assert t.warning == 120 * 1024

    def test_warning_must_be_below_max(self):
        with pytest.raises(ValueError):
            BudgetThreshold(warning=100, max=100)


class TestParseTargetBudgets:
    def test_buckets_and_total(self):
        budgets = parse_target_budgets(
            {
                "main": {"max": "150KB", "warning": "120KB"},
                "total": {"max": "500KB", "warning": "400KB"},
            },
            "client",
        )
        assert budgets.get("main").max == 150 * 1024
        assert budgets.get("vendor") is None
        assert budgets.total.warning == 400 * 1024

    def test_unknown_bucket(self):
        with pytest.raises(UnknownBudgetError) as exc:
            parse_target_budgets({"styles": {"max": "1KB", "warning": "512B"}}, "client")
        assert "styles" in str(exc.value)

    def test_malformed_size(self):
        with pytest.raises(InvalidSizeError):
            parse_target_budgets({"main": {"max": "lots", "warning": "1KB"}}, "client")

    def test_missing_key(self):
        with pytest.raises(InvalidConfigError):
            parse_target_budgets({"main": {"max": "1KB"}}, "client")

    def test_inverted_thresholds(self):
        with pytest.raises(InvalidConfigError):
            parse_target_budgets({"main": {"max": "100KB", "warning": "120KB"}}, "client")


class TestPerfAuditConfig:
    def test_defaults(self):
        config = PerfAuditConfig()
        assert config.client_output_path == "./dist"
        assert config.server_output_path == "./dist/server"
        assert config.target == "client"
        assert config.retention_days == 30
        assert config.debounce_seconds == 1.0
        assert config.thresholds == ChangeThresholds(1024, 5.0)
        assert config.client_budgets.get("main").max == 150 * 1024
        assert config.server_budgets.get("main").max == 200 * 1024
        assert config.server_budgets.total.max == 800 * 1024

    def test_targets(self):
        assert PerfAuditConfig(target="client").targets == (Target.CLIENT,)
        assert PerfAuditConfig(target="server").targets == (Target.SERVER,)
        assert PerfAuditConfig(target="both").targets == (Target.CLIENT, Target.SERVER)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"target": "edge"},
            {"retention_days": -1},
            {"debounce_seconds": -0.5},
            {"verbosity": "loud"},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(InvalidConfigError):
            PerfAuditConfig(**kwargs)


class TestLoadConfig:
    def test_defaults_without_files(self, isolated):
        config = load_config()
        assert config == PerfAuditConfig()

    def test_project_file(self, isolated):
        (isolated / "perf-audit.toml").write_text(
            'target = "both"\n'
            "gzip = false\n"
            "[budgets.client]\n"
            'main = { max = "50KB", warning = "40KB" }\n'
            "[thresholds]\n"
            "min_absolute_bytes = 2048\n"
        )
        config = load_config()
        assert config.target == "both"
        assert config.gzip is False
        assert config.client_budgets.get("main").max == 50 * 1024
        # Replacing a target's table replaces all of its buckets
        assert config.client_budgets.get("vendor") is None
        assert config.server_budgets.get("main").max == 200 * 1024
        assert config.thresholds.min_absolute_bytes == 2048
        assert config.thresholds.min_percent == 5.0

    def test_explicit_file_overrides_project_file(self, isolated, tmp_path):
        (isolated / "perf-audit.toml").write_text("retention_days = 10\n")
        explicit = tmp_path / "ci.toml"
        explicit.write_text("retention_days = 3\n")
        assert load_config(config_file=explicit).retention_days == 3

    def test_env_overrides_files(self, isolated, monkeypatch):
        (isolated / "perf-audit.toml").write_text("retention_days = 10\n")
        monkeypatch.setenv("PERF_AUDIT_RETENTION_DAYS", "7")
        monkeypatch.setenv("PERF_AUDIT_GZIP", "off")
        config = load_config()
        assert config.retention_days == 7
        assert config.gzip is False

    def test_cli_overrides_env(self, isolated, monkeypatch):
        monkeypatch.setenv("PERF_AUDIT_TARGET", "server")
        assert load_config(target="both").target == "both"

    def test_none_overrides_are_ignored(self, isolated):
        assert load_config(target=None).target == "client"

    def test_verbose_and_quiet(self, isolated):
        assert load_config(verbose=True).verbosity == "verbose"
        assert load_config(quiet=True).verbosity == "quiet"

    def test_missing_explicit_file(self, isolated, tmp_path):
        with pytest.raises(InvalidPathError) as exc:
            load_config(config_file=tmp_path / "nope.toml")
        assert exc.value.reason == "config file not found"

    def test_invalid_toml(self, isolated):
        (isolated / "perf-audit.toml").write_text("target = \n")
        with pytest.raises(ConfigurationError):
            load_config()

    def test_bad_env_value(self, isolated, monkeypatch):
        monkeypatch.setenv("PERF_AUDIT_RETENTION_DAYS", "soon")
        with pytest.raises(ConfigurationError):
            load_config()

    def test_unknown_key(self, isolated):
        (isolated / "perf-audit.toml").write_text("colour = true\n")
        with pytest.raises(ConfigurationError):
            load_config()

    def test_unknown_budget_target(self, isolated):
        (isolated / "perf-audit.toml").write_text(
            '[budgets.edge]\nmain = { max = "1KB", warning = "512B" }\n'
        )
        with pytest.raises(InvalidConfigError):
            load_config()

    def test_unknown_bucket_in_file(self, isolated):
        (isolated / "perf-audit.toml").write_text(
            '[budgets.client]\nfonts = { max = "1KB", warning = "512B" }\n'
        )
        with pytest.raises(UnknownBudgetError):
            load_config()
