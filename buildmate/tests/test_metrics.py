"""
Tests for build metrics recording and argument classification.
"""

import json
import shutil
import stat
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import TestCase
from unittest.mock import patch

from buildmate.metrics import (
    BuildMetrics,
    MetricsStore,
    determine_profile,
    extract_features,
    get_dependencies_compiled,
    record_build_metrics,
)


class TestArgumentClassification(TestCase):
    def test_profile(self) -> None:
        self.assertEqual(determine_profile(["build"]), "debug")
        self.assertEqual(determine_profile(["build", "--release"]), "release")
        self.assertEqual(determine_profile(["build", "--profile", "bench"]), "bench")
        self.assertEqual(determine_profile(["build", "--profile=ci"]), "ci")

    def test_features(self) -> None:
        self.assertEqual(extract_features(["build"]), ["default"])
        self.assertEqual(
            extract_features(["build", "--features", "a, b,"]), ["a", "b"]
        )
        self.assertEqual(extract_features(["build", "--features=serde"]), ["serde"])
        self.assertEqual(extract_features(["build", "--all-features"]), ["all-features"])
        self.assertEqual(
            extract_features(["build", "--no-default-features"]), ["no-default-features"]
        )


class TestMetricsStore(TestCase):
    def setUp(self) -> None:
        self.test_dir = Path(tempfile.mkdtemp())

    def tearDown(self) -> None:
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def _metrics(self, success: bool, duration: float, timestamp: str) -> BuildMetrics:
        return BuildMetrics(
            timestamp=timestamp,
            command="cargo build",
            duration_seconds=duration,
            success=success,
            error_count=0 if success else 2,
            warning_count=1,
            incremental=False,
            profile="debug",
            features=["default"],
            dependencies_compiled=0,
            crate_units_compiled=3,
        )

    def test_daily_summary(self) -> None:
        store = MetricsStore(self.test_dir)
        store.record_build(self._metrics(True, 2.0, "2026-03-01T10:00:00+00:00"))
        store.record_build(self._metrics(False, 4.0, "2026-03-01T11:00:00+00:00"))
        data = store.record_build(self._metrics(True, 1.0, "2026-03-02T09:00:00+00:00"))

        first = data.daily_summary["2026-03-01"]
        self.assertEqual(first.total_builds, 2)
        self.assertEqual(first.successful_builds, 1)
        self.assertEqual(first.failed_builds, 1)
        self.assertEqual(first.avg_build_time, 3.0)
        self.assertEqual(first.total_errors, 2)
        self.assertEqual(data.daily_summary["2026-03-02"].total_builds, 1)

        reloaded = store.load()
        self.assertEqual(len(reloaded.builds), 3)
        self.assertEqual(reloaded.daily_summary["2026-03-01"].total_warnings, 2)

    def test_builds_are_capped(self) -> None:
        store = MetricsStore(self.test_dir, limit=2)
        for hour in range(4):
            store.record_build(self._metrics(True, 1.0, f"2026-03-01T0{hour}:00:00+00:00"))
        with open(store.data_file, encoding="utf-8") as f:
            raw = json.load(f)
        self.assertEqual(len(raw["builds"]), 2)
        self.assertEqual(raw["builds"][-1]["timestamp"], "2026-03-01T03:00:00+00:00")
        self.assertEqual(raw["daily_summary"]["2026-03-01"]["total_builds"], 4)

    def test_missing_compiler_means_no_dependencies(self) -> None:
        self.assertEqual(get_dependencies_compiled(str(self.test_dir / "no-cargo")), 0)

    def test_non_object_metrics_file_starts_fresh(self) -> None:
        store = MetricsStore(self.test_dir)
        store.data_file.write_text("[1, 2, 3]", encoding="utf-8")
        with self.assertLogs("buildmate.metrics", level="WARNING"):
            data = store.record_build(
                self._metrics(True, 1.0, "2026-03-01T10:00:00+00:00")
            )
        self.assertEqual(len(data.builds), 1)
        self.assertEqual(len(store.load().builds), 1)

    @unittest.skipIf(sys.platform == "win32", "shell stub needs a POSIX shell")
    def test_dependency_count_from_metadata(self) -> None:
        metadata = {
            "packages": [{"id": "root"}, {"id": "serde"}, {"id": "libc"}],
            "resolve": {"root": "root"},
        }
        self.assertEqual(get_dependencies_compiled(self._stub(json.dumps(metadata))), 2)

    @unittest.skipIf(sys.platform == "win32", "shell stub needs a POSIX shell")
    def test_malformed_metadata_means_no_dependencies(self) -> None:
        for payload in ("[1, 2]", "\"text\"", '{"packages": [1], "resolve": null}', "not json"):
            self.assertEqual(get_dependencies_compiled(self._stub(payload)), 0, payload)

    def _stub(self, payload: str) -> str:
        stub = self.test_dir / "cargo"
        stub.write_text(f"#!/bin/sh\ncat <<'EOF'\n{payload}\nEOF\n", encoding="utf-8")
        stub.chmod(stub.stat().st_mode | stat.S_IXUSR)
        return str(stub)

    def test_record_build_metrics(self) -> None:
        with patch("buildmate.metrics.get_dependencies_compiled", return_value=7):
            metrics = record_build_metrics(
                ["build", "--release", "--features", "x"],
                elapsed=1.5,
                error_count=0,
                warning_count=2,
                success=True,
                crate_units_compiled=4,
                data_dir=self.test_dir,
            )
        self.assertEqual(metrics.command, "cargo build --release --features x")
        self.assertEqual(metrics.profile, "release")
        self.assertEqual(metrics.features, ["x"])
        self.assertEqual(metrics.dependencies_compiled, 7)
        self.assertEqual(metrics.crate_units_compiled, 4)
        self.assertEqual(len(MetricsStore(self.test_dir).load().builds), 1)


if __name__ == "__main__":
    unittest.main()
