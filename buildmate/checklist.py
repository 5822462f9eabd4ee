#!/usr/bin/env python3
"""Fix-it checklists generated from a build's errors and warnings."""

import shutil
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from buildmate.diagnostics import ParsedError, ParsedWarning
from buildmate.util.color_output import (
    print_blue,
    print_heading,
    print_plain,
    print_red,
    print_yellow,
)


def checklist_dir(data_dir: Path) -> Path:
    return data_dir / "checklists"


def checklist_file(data_dir: Path) -> Path:
    return checklist_dir(data_dir) / "latest.txt"


def render_checklist(
    errors: List[ParsedError],
    warnings: List[ParsedWarning],
    now: Optional[datetime] = None,
) -> str:
    now = now or datetime.now()
    lines: List[str] = [
        f"=== Build Checklist [{len(errors)} errors, {len(warnings)} warnings] ===",
        f"Generated: {now.strftime('%Y-%m-%d %H:%M:%S')}",
        "",
    ]
    if errors:
        lines.append("ERRORS (must fix):")
        for error in errors:
            lines.append(
                f"[ ] Fix {error.code} in {error.file}:{error.line} - {error.message}"
            )
        lines.append("")
    if warnings:
        lines.append("WARNINGS (consider fixing):")
        for warning in warnings:
            lines.append(
                f"[ ] {warning.code} in {warning.file}:{warning.line} - {warning.message}"
            )
    return "\n".join(lines) + "\n"


def generate_checklist(
    errors: List[ParsedError], warnings: List[ParsedWarning], data_dir: Path
) -> Path:
    """Write ``checklists/latest.txt`` plus a timestamped archive copy."""
    now = datetime.now()
    target = checklist_file(data_dir)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(render_checklist(errors, warnings, now), encoding="utf-8")

    archive = checklist_dir(data_dir) / f"checklist_{now.strftime('%Y%m%d_%H%M%S')}.txt"
    shutil.copyfile(target, archive)
    return target


def show_checklist(data_dir: Path) -> bool:
    target = checklist_file(data_dir)
    if not target.exists():
        print_plain("No checklist found. Run a build first!")
        return False

    for line in target.read_text(encoding="utf-8").splitlines():
        if line.startswith("==="):
            print_heading(line, "blue")
        elif line.startswith("ERRORS"):
            print_heading(line, "red")
        elif line.startswith("WARNINGS"):
            print_heading(line, "yellow")
        elif line.startswith("[ ] Fix"):
            print_red(line)
        elif line.startswith("[ ]"):
            print_yellow(line)
        else:
            print_plain(line)
    print_blue("\n💡 Tip: Copy this checklist to your editor to track progress!")
    return True
