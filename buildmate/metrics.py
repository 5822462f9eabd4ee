#!/usr/bin/env python3
"""Per-build metrics recording with daily roll-ups."""

import json
import logging
import subprocess
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import fasteners


logger = logging.getLogger(__name__)

DEFAULT_METRICS_LIMIT = 10000


@dataclass
class BuildMetrics:
    timestamp: str  # ISO-8601, UTC
    command: str
    duration_seconds: float
    success: bool
    error_count: int
    warning_count: int
    incremental: bool
    profile: str
    features: List[str]
    dependencies_compiled: int
    crate_units_compiled: int
    memory_peak_mb: Optional[float] = None
    cpu_usage_percent: Optional[float] = None

    @property
    def date(self) -> str:
        return datetime.fromisoformat(self.timestamp).date().isoformat()


@dataclass
class DailySummary:
    date: str
    total_builds: int = 0
    successful_builds: int = 0
    failed_builds: int = 0
    total_time_seconds: float = 0.0
    avg_build_time: float = 0.0
    total_errors: int = 0
    total_warnings: int = 0

    def add(self, metrics: BuildMetrics) -> None:
        self.total_builds += 1
        if metrics.success:
            self.successful_builds += 1
        else:
            self.failed_builds += 1
        self.total_time_seconds += metrics.duration_seconds
        self.avg_build_time = self.total_time_seconds / self.total_builds
        self.total_errors += metrics.error_count
        self.total_warnings += metrics.warning_count


@dataclass
class MetricsData:
    builds: List[BuildMetrics] = field(default_factory=lambda: [])
    daily_summary: Dict[str, DailySummary] = field(default_factory=lambda: {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MetricsData":
        return cls(
            builds=[BuildMetrics(**b) for b in data.get("builds", [])],
            daily_summary={
                k: DailySummary(**v) for k, v in data.get("daily_summary", {}).items()
            },
        )


class MetricsStore:
    """Build metrics persisted to ``<data_dir>/tide_data.json``."""

    def __init__(self, data_dir: Path, limit: int = DEFAULT_METRICS_LIMIT) -> None:
        self.data_dir = data_dir
        self.data_file = data_dir / "tide_data.json"
        self.lock_file = data_dir / ".tide_data.lock"
        self.limit = limit

    def load(self) -> MetricsData:
        if not self.data_file.exists():
            return MetricsData()
        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                raw = json.load(f)
            if not isinstance(raw, dict):
                raise ValueError(f"expected an object, got {type(raw).__name__}")
            return MetricsData.from_dict(raw)
        except (json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Starting fresh metrics, {self.data_file} unreadable: {e}")
            return MetricsData()

    def record_build(self, metrics: BuildMetrics) -> MetricsData:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        with fasteners.InterProcessLock(str(self.lock_file)):
            data = self.load()
            data.builds.append(metrics)
            summary = data.daily_summary.setdefault(
                metrics.date, DailySummary(date=metrics.date)
            )
            summary.add(metrics)
            if len(data.builds) > self.limit:
                data.builds = data.builds[len(data.builds) - self.limit :]
            tmp_file = self.data_file.with_suffix(".json.tmp")
            with open(tmp_file, "w", encoding="utf-8") as f:
                json.dump(asdict(data), f, indent=2)
            tmp_file.replace(self.data_file)
        return data


def determine_profile(args: List[str]) -> str:
    if "--release" in args:
        return "release"
    if "--debug" in args:
        return "debug"
    for i, arg in enumerate(args):
        if arg == "--profile" and i + 1 < len(args):
            return args[i + 1]
        if arg.startswith("--profile="):
            return arg.split("=", 1)[1]
    return "debug"


def extract_features(args: List[str]) -> List[str]:
    for i, arg in enumerate(args):
        if arg == "--features" and i + 1 < len(args):
            return [f.strip() for f in args[i + 1].split(",") if f.strip()]
        if arg.startswith("--features="):
            return [f.strip() for f in arg.split("=", 1)[1].split(",") if f.strip()]
    if "--all-features" in args:
        return ["all-features"]
    if "--no-default-features" in args:
        return ["no-default-features"]
    return ["default"]


def get_dependencies_compiled(compiler: str = "cargo", cwd: Optional[Path] = None) -> int:
    """Number of non-root packages in the workspace metadata, 0 if unavailable."""
    try:
        completed = subprocess.run(
            [compiler, "metadata", "--format-version", "1"],
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            timeout=60,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"cargo metadata unavailable: {e}")
        return 0
    if completed.returncode != 0:
        return 0
    try:
        metadata = json.loads(completed.stdout)
    except ValueError:
        return 0
    if not isinstance(metadata, dict):
        return 0
    packages = metadata.get("packages")
    resolve = metadata.get("resolve")
    root_id = resolve.get("root") if isinstance(resolve, dict) else None
    if not isinstance(packages, list) or not root_id:
        return 0
    return sum(
        1 for pkg in packages if isinstance(pkg, dict) and pkg.get("id") != root_id
    )


def record_build_metrics(
    args: List[str],
    elapsed: float,
    error_count: int,
    warning_count: int,
    success: bool,
    crate_units_compiled: int,
    data_dir: Path,
    compiler: str = "cargo",
    limit: int = DEFAULT_METRICS_LIMIT,
) -> BuildMetrics:
    metrics = BuildMetrics(
        timestamp=datetime.now(timezone.utc).isoformat(),
        command=" ".join([compiler, *args]),
        duration_seconds=elapsed,
        success=success,
        error_count=error_count,
        warning_count=warning_count,
        incremental="--incremental" in args or "-i" in args,
        profile=determine_profile(args),
        features=extract_features(args),
        dependencies_compiled=get_dependencies_compiled(compiler),
        crate_units_compiled=crate_units_compiled,
    )
    MetricsStore(data_dir, limit).record_build(metrics)
    return metrics
