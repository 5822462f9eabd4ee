#!/usr/bin/env python3
"""
Results persistence: latest-result files and the rolling build history.

Layout under the data directory:

    errors/latest.txt       one "[code] file:line - message" per error
    warnings/latest.txt     same format for warnings
    artifacts/latest.txt    "📦 target -> file, file" per compiler artifact
    scripts/latest.txt      "🔨 package -> libs: n, paths: n, cfgs: n"
    history/history.json    list of HistoryEntry, newest last, capped

Concurrent buildmate invocations serialize on an inter-process lock so a
history write is never interleaved with another.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

import fasteners

from buildmate.diagnostics import ParsedError, ParsedWarning
from buildmate.events import BuildScriptExecuted, CompilerArtifact
from buildmate.util.color_output import (
    print_dim,
    print_green,
    print_heading,
    print_labeled,
    print_plain,
    print_red,
)


logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 1000
DEFAULT_SHOW_LIMIT = 50
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

LATEST_FILES = {
    "errors": Path("errors") / "latest.txt",
    "warnings": Path("warnings") / "latest.txt",
    "artifacts": Path("artifacts") / "latest.txt",
    "scripts": Path("scripts") / "latest.txt",
}


@dataclass
class HistoryEntry:
    timestamp: str  # ISO-8601, UTC
    command: str
    error_count: int
    warning_count: int
    errors: List[str] = field(default_factory=lambda: [])
    warnings: List[str] = field(default_factory=lambda: [])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        return cls(
            timestamp=str(data["timestamp"]),
            command=str(data.get("command", "")),
            error_count=int(data.get("error_count", 0)),
            warning_count=int(data.get("warning_count", 0)),
            errors=[str(e) for e in data.get("errors", [])],
            warnings=[str(w) for w in data.get("warnings", [])],
        )

    @property
    def display_time(self) -> str:
        try:
            return datetime.fromisoformat(self.timestamp).strftime(TIMESTAMP_FORMAT)
        except ValueError:
            return self.timestamp


class HistoryStore:
    """JSON build history stored under ``<data_dir>/history``."""

    def __init__(self, data_dir: Path, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        self.history_dir = data_dir / "history"
        self.history_file = self.history_dir / "history.json"
        self.lock_file = self.history_dir / ".history.lock"
        self.limit = limit

    def _read(self) -> List[HistoryEntry]:
        if not self.history_file.exists():
            return []
        try:
            with open(self.history_file, "r", encoding="utf-8") as f:
                raw = json.load(f)
            return [HistoryEntry.from_dict(item) for item in raw]
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring unreadable history file {self.history_file}: {e}")
            return []

    def load(self) -> List[HistoryEntry]:
        if not self.history_file.exists():
            return []
        with fasteners.InterProcessLock(str(self.lock_file)):
            return self._read()

    def append(self, entry: HistoryEntry) -> None:
        self.history_dir.mkdir(parents=True, exist_ok=True)
        with fasteners.InterProcessLock(str(self.lock_file)):
            history = self._read()
            history.append(entry)
            if len(history) > self.limit:
                history = history[len(history) - self.limit :]
            tmp_file = self.history_file.with_suffix(".json.tmp")
            with open(tmp_file, "w", encoding="utf-8") as f:
                json.dump([asdict(e) for e in history], f, indent=2, ensure_ascii=False)
            tmp_file.replace(self.history_file)


def _write_lines(path: Path, lines: Sequence[object]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for line in lines:
            f.write(f"{line}\n")


def save_results(
    errors: List[ParsedError],
    warnings: List[ParsedWarning],
    artifacts: List[CompilerArtifact],
    build_scripts: List[BuildScriptExecuted],
    argv: List[str],
    data_dir: Path,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> None:
    """Write the latest-result files and append this build to the history."""
    _write_lines(data_dir / LATEST_FILES["errors"], errors)
    _write_lines(data_dir / LATEST_FILES["warnings"], warnings)
    _write_lines(data_dir / LATEST_FILES["artifacts"], artifacts)
    _write_lines(data_dir / LATEST_FILES["scripts"], build_scripts)

    entry = HistoryEntry(
        timestamp=datetime.now(timezone.utc).isoformat(),
        command=" ".join(argv),
        error_count=len(errors),
        warning_count=len(warnings),
        errors=[str(e) for e in errors],
        warnings=[str(w) for w in warnings],
    )
    HistoryStore(data_dir, limit).append(entry)


def parse_history_args(args: Sequence[str]) -> Tuple[str, int]:
    """``[kind] [limit]`` -> (kind, limit); bad or missing limit means 50."""
    kind = args[0] if args else "summary"
    limit = DEFAULT_SHOW_LIMIT
    if len(args) > 1:
        try:
            limit = int(args[1])
        except ValueError:
            limit = DEFAULT_SHOW_LIMIT
    return kind, limit


def _collect_recent(
    history: List[HistoryEntry], attr: str, limit: int
) -> List[Tuple[str, str]]:
    collected: List[Tuple[str, str]] = []
    for entry in reversed(history):
        for item in getattr(entry, attr):
            collected.append((entry.display_time, item))
            if len(collected) >= limit:
                return collected
    return collected


def _show_items(title: str, color: str, items: List[Tuple[str, str]]) -> None:
    print_heading(title, color)
    for timestamp, item in items:
        print_labeled(f"{timestamp} - ", item, "dim")


def show_summary(history: List[HistoryEntry], limit: int) -> None:
    print_heading("=== Build History Summary ===", "blue")
    recent = list(reversed(history))[:limit]
    successful = sum(1 for e in recent if e.error_count == 0)
    print_plain(f"📊 Last {len(recent)} builds:")
    print_green(f"  ✅ Successful: {successful}")
    print_red(f"  ❌ Failed: {len(recent) - successful}")
    print_plain("\n📈 Recent builds:")
    for entry in recent[:10]:
        status = "✅" if entry.error_count == 0 else "❌"
        print_plain(
            f"  {status} {entry.display_time} - {entry.command} - "
            f"🔴 {entry.error_count} ⚠️ {entry.warning_count}"
        )


def show_history(args: Sequence[str], data_dir: Path) -> None:
    history = HistoryStore(data_dir).load()
    if not history:
        print_plain("No history found.")
        return

    kind, limit = parse_history_args(args)
    if kind == "errors":
        _show_items("=== Error History ===", "red", _collect_recent(history, "errors", limit))
    elif kind == "warnings":
        _show_items(
            "=== Warning History ===", "yellow", _collect_recent(history, "warnings", limit)
        )
    else:
        show_summary(history, limit)


def show_latest(kind: str, data_dir: Path) -> bool:
    """Print one latest-result file (or all of them for ``all``)."""
    kinds = list(LATEST_FILES) if kind == "all" else [kind]
    if any(k not in LATEST_FILES for k in kinds):
        return False
    for k in kinds:
        path = data_dir / LATEST_FILES[k]
        print_heading(f"=== Latest {k} ===", "blue")
        if not path.exists():
            print_dim("  (none recorded yet)")
            continue
        content = path.read_text(encoding="utf-8").rstrip("\n")
        print_plain(content if content else "  (empty)")
    return True
