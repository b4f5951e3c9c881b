"""Configuration loading and management for perf-audit.

Configuration sources are merged in priority order:
    1. Defaults (defined in PerfAuditConfig)
    2. Global config (~/.perf-audit.toml)
    3. Project config (./perf-audit.toml)
    4. Explicit config file
    5. Environment variables (PERF_AUDIT_* prefix)
    6. CLI overrides (passed as kwargs)

Budget tables are parsed into bytes here, once, so a malformed size string
or an unknown bucket fails at startup rather than halfway through a scan.

Example project file::

    target = "both"
    gzip = true
    ignore_paths = ["**/*.test.js"]

    [budgets.client]
    main = { max = "150KB", warning = "120KB" }
    vendor = { max = "100KB", warning = "80KB" }
    total = { max = "500KB", warning = "400KB" }

    [thresholds]
    min_absolute_bytes = 1024
    min_percent = 5.0
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Mapping, Optional, get_type_hints

from .exceptions import (
    ConfigurationError,
    InvalidConfigError,
    InvalidPathError,
    UnknownBudgetError,
)
from .models import AnalysisTarget, Target
from .sizes import parse_size

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

Verbosity = Literal["quiet", "normal", "verbose"]

BUDGET_BUCKETS = ("main", "vendor", "runtime", "total")

DEFAULT_CLIENT_BUDGETS = {
    "main": {"max": "150KB", "warning": "120KB"},
    "vendor": {"max": "100KB", "warning": "80KB"},
    "total": {"max": "500KB", "warning": "400KB"},
}

DEFAULT_SERVER_BUDGETS = {
    "main": {"max": "200KB", "warning": "150KB"},
    "vendor": {"max": "150KB", "warning": "120KB"},
    "total": {"max": "800KB", "warning": "600KB"},
}

_ENV_PREFIX = "PERF_AUDIT_"

PROJECT_CONFIG_NAME = "perf-audit.toml"


@dataclass(frozen=True)
class BudgetThreshold:
    """A ``(warning, max)`` pair in bytes."""

    warning: int
    max: int

    def __post_init__(self) -> None:
        if self.warning < 0 or self.max < 0:
            raise ValueError("budget thresholds must be non-negative")
        if self.warning >= self.max:
            raise ValueError(f"warning ({self.warning}) must be below max ({self.max})")

    @classmethod
    def from_strings(cls, max_size: str, warning: str) -> "BudgetThreshold":
        return cls(warning=parse_size(warning), max=parse_size(max_size))


@dataclass(frozen=True)
class TargetBudgets:
    """Bucket budgets for one target. ``total`` applies to the summed size."""

    bundles: Mapping[str, BudgetThreshold] = field(default_factory=dict)
    total: Optional[BudgetThreshold] = None

    def get(self, bucket: str) -> Optional[BudgetThreshold]:
        return self.bundles.get(bucket)


@dataclass(frozen=True)
class ChangeThresholds:
    """Significance filter for change detection.

    A change on an artifact present in both results is significant when
    EITHER the absolute delta exceeds ``min_absolute_bytes`` OR the relative
    delta exceeds ``min_percent``.
    """

    min_absolute_bytes: int = 1024
    min_percent: float = 5.0

    def __post_init__(self) -> None:
        if self.min_absolute_bytes < 0:
            raise ValueError("min_absolute_bytes must be non-negative")
        if self.min_percent < 0:
            raise ValueError("min_percent must be non-negative")


def parse_target_budgets(raw: Mapping[str, Any], target: str) -> TargetBudgets:
    """Build a :class:`TargetBudgets` from a ``{bucket: {max, warning}}`` table.

    Raises:
        UnknownBudgetError: For a bucket outside the fixed vocabulary.
        InvalidSizeError: For a malformed size string.
        InvalidConfigError: For a missing key or ``warning >= max``.
    """
    bundles: dict[str, BudgetThreshold] = {}
    total: Optional[BudgetThreshold] = None

    for bucket, entry in raw.items():
        if bucket not in BUDGET_BUCKETS:
            raise UnknownBudgetError(bucket, target, BUDGET_BUCKETS)
        if not isinstance(entry, Mapping) or "max" not in entry or "warning" not in entry:
            raise InvalidConfigError(
                f"budgets.{target}.{bucket}", entry, "expected a table with 'max' and 'warning'"
            )
        try:
            threshold = BudgetThreshold.from_strings(entry["max"], entry["warning"])
        except ValueError as e:
            raise InvalidConfigError(f"budgets.{target}.{bucket}", dict(entry), str(e))

        if bucket == "total":
            total = threshold
        else:
            bundles[bucket] = threshold

    return TargetBudgets(bundles=bundles, total=total)


@dataclass(frozen=True)
class PerfAuditConfig:
    """Configuration for one perf-audit process.

    Attributes:
        Build output:
            client_output_path: Directory holding client bundles
            server_output_path: Directory holding server bundles
            target: Which targets to analyze (client, server, both)

        Scanning:
            gzip: Measure gzip-compressed size of every artifact
            ignore_paths: Glob patterns (relative to cwd) to skip

        Budgets:
            client_budgets / server_budgets: Parsed bucket tables

        Change detection:
            thresholds: Significance filter for regressions

        History:
            database_path: SQLite history file
            retention_days: Age after which builds are cleaned up
            save_history: Persist every analysis

        Watch mode:
            debounce_seconds: Minimum gap between two scan starts
            watch_paths: Extra paths to watch besides the output directories
    """

    client_output_path: str = "./dist"
    server_output_path: str = "./dist/server"
    target: AnalysisTarget = "client"

    gzip: bool = True
    ignore_paths: list[str] = field(default_factory=lambda: ["**/*.test.js", "**/*.spec.js"])

    client_budgets: TargetBudgets = field(
        default_factory=lambda: parse_target_budgets(DEFAULT_CLIENT_BUDGETS, "client")
    )
    server_budgets: TargetBudgets = field(
        default_factory=lambda: parse_target_budgets(DEFAULT_SERVER_BUDGETS, "server")
    )

    thresholds: ChangeThresholds = field(default_factory=ChangeThresholds)

    database_path: str = ".perf-audit/performance.db"
    retention_days: int = 30
    save_history: bool = True

    debounce_seconds: float = 1.0
    watch_paths: list[str] = field(default_factory=list)

    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        if self.target not in ("client", "server", "both"):
            raise InvalidConfigError("target", self.target, "must be client, server or both")
        if self.retention_days < 0:
            raise InvalidConfigError("retention_days", self.retention_days, "must be non-negative")
        if self.debounce_seconds < 0:
            raise InvalidConfigError(
                "debounce_seconds", self.debounce_seconds, "must be non-negative"
            )
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise InvalidConfigError("verbosity", self.verbosity, "must be quiet, normal or verbose")

    @property
    def targets(self) -> tuple[Target, ...]:
        """Targets selected by ``target``, client first."""
        if self.target == "both":
            return (Target.CLIENT, Target.SERVER)
        return (Target(self.target),)

    def output_path(self, target: Target) -> str:
        return self.client_output_path if target is Target.CLIENT else self.server_output_path

    def budgets_for(self, target: Target) -> TargetBudgets:
        return self.client_budgets if target is Target.CLIENT else self.server_budgets


def load_config(config_file: Optional[Path] = None, **overrides) -> PerfAuditConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so callers can pass unset options through.

    Returns:
        Validated PerfAuditConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing, or a
            budget table is malformed.
    """
    merged: dict = {}

    global_config = Path.home() / ".perf-audit.toml"
    if global_config.exists():
        merged.update(_load_toml_file(global_config))

    project_config = Path.cwd() / PROJECT_CONFIG_NAME
    if project_config.exists():
        merged.update(_load_toml_file(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise InvalidPathError(config_file, "config file not found")
        merged.update(_load_toml_file(config_file))

    merged.update(_load_env_vars())

    if overrides.pop("verbose", False):
        overrides["verbosity"] = "verbose"
    if overrides.pop("quiet", False):
        overrides["verbosity"] = "quiet"
    merged.update({k: v for k, v in overrides.items() if v is not None})

    # [budgets.client] / [budgets.server]
    budgets = merged.pop("budgets", None)
    if budgets is not None:
        if not isinstance(budgets, Mapping):
            raise InvalidConfigError("budgets", budgets, "expected a table")
        for target_name in budgets:
            if target_name not in ("client", "server"):
                raise InvalidConfigError(
                    f"budgets.{target_name}", budgets[target_name], "unknown target"
                )
        if "client" in budgets:
            merged["client_budgets"] = parse_target_budgets(budgets["client"], "client")
        if "server" in budgets:
            merged["server_budgets"] = parse_target_budgets(budgets["server"], "server")

    # [thresholds]
    thresholds = merged.pop("thresholds", None)
    if thresholds is not None:
        if isinstance(thresholds, ChangeThresholds):
            merged["thresholds"] = thresholds
        elif isinstance(thresholds, Mapping):
            try:
                merged["thresholds"] = ChangeThresholds(**thresholds)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid [thresholds] config: {e}")
        else:
            raise InvalidConfigError("thresholds", thresholds, "expected a table")

    try:
        return PerfAuditConfig(**merged)
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load scalar configuration fields from PERF_AUDIT_* environment variables.

    List and nested fields (ignore_paths, budgets, thresholds) are file-only.
    """
    type_hints = get_type_hints(PerfAuditConfig)
    result: dict[str, Any] = {}

    for field_name in PerfAuditConfig.__dataclass_fields__:
        env_key = f"{_ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
        except ValueError as e:
            raise ConfigurationError(f"Invalid {env_key}: {e}")
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment string to the field's type, or ``None`` if unsupported."""
    origin = getattr(type_hint, "__origin__", None)

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load a TOML file, wrapping parse errors in ConfigurationError."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Invalid config file '{path}': {e}")


def render_project_config() -> str:
    """Starter ``perf-audit.toml`` holding the default paths, budgets and thresholds."""
    defaults = PerfAuditConfig()
    thresholds = defaults.thresholds
    ignore = ", ".join(f'"{p}"' for p in defaults.ignore_paths)

    lines = [
        "# perf-audit configuration",
        "",
        f'client_output_path = "{defaults.client_output_path}"',
        f'server_output_path = "{defaults.server_output_path}"',
        f'target = "{defaults.target}"',
        f"gzip = {str(defaults.gzip).lower()}",
        f"ignore_paths = [{ignore}]",
        "",
        f'database_path = "{defaults.database_path}"',
        f"retention_days = {defaults.retention_days}",
    ]
    for target, table in (("client", DEFAULT_CLIENT_BUDGETS), ("server", DEFAULT_SERVER_BUDGETS)):
        lines += ["", f"[budgets.{target}]"]
        for bucket, entry in table.items():
            lines.append(f'{bucket} = {{ max = "{entry["max"]}", warning = "{entry["warning"]}" }}')
    lines += [
        "",
        "[thresholds]",
        f"min_absolute_bytes = {thresholds.min_absolute_bytes}",
        f"min_percent = {thresholds.min_percent}",
    ]
    return "\n".join(lines) + "\n"
