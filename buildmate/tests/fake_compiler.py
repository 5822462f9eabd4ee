"""Helpers that stand in for cargo: a script replaying canned stdout/stderr."""

import json
import sys
from pathlib import Path
from typing import Any, Optional


def compiler_message(
    level: str,
    message: str,
    file: Optional[str] = "src/main.rs",
    line: int = 1,
    column: int = 1,
    code: Optional[str] = None,
) -> str:
    spans: list[dict[str, Any]] = []
    if file is not None:
        spans.append(
            {
                "file_name": file,
                "line_start": line,
                "line_end": line,
                "column_start": column,
                "column_end": column + 1,
                "is_primary": True,
                "text": [],
            }
        )
    return json.dumps(
        {
            "reason": "compiler-message",
            "package_id": "demo 0.1.0 (path+file:///tmp/demo)",
            "message": {
                "message": message,
                "code": {"code": code, "explanation": None} if code else None,
                "level": level,
                "spans": spans,
                "children": [],
                "rendered": f"{level}: {message}\n",
            },
        }
    )


def compiler_artifact(name: str = "demo", filenames: Optional[list[str]] = None) -> str:
    return json.dumps(
        {
            "reason": "compiler-artifact",
            "package_id": f"{name} 0.1.0 (path+file:///tmp/{name})",
            "target": {"name": name, "kind": ["bin"], "src_path": "src/main.rs"},
            "profile": {"opt_level": "0", "debuginfo": 2, "test": False},
            "features": [],
            "filenames": filenames if filenames is not None else [f"target/debug/{name}"],
            "fresh": False,
        }
    )


def build_script_executed(package_id: str = "openssl-sys 0.9.0") -> str:
    return json.dumps(
        {
            "reason": "build-script-executed",
            "package_id": package_id,
            "linked_libs": ["ssl", "crypto"],
            "linked_paths": ["native=/usr/lib"],
            "cfgs": ["ossl300"],
            "env": [],
            "out_dir": "/tmp/out",
        }
    )


def write_fake_compiler(
    directory: Path,
    stdout_lines: list[str],
    stderr_lines: Optional[list[str]] = None,
    exit_code: int = 0,
    sleep_seconds: float = 0.0,
) -> list[str]:
    """Write a script that replays the given lines, returning its command line."""
    script = directory / "fake_cargo.py"
    script.write_text(
        "import sys, time\n"
        f"out = {stdout_lines!r}\n"
        f"err = {list(stderr_lines or [])!r}\n"
        "for line in err:\n"
        "    sys.stderr.write(line + '\\n')\n"
        "sys.stderr.flush()\n"
        "for line in out:\n"
        "    sys.stdout.write(line + '\\n')\n"
        "sys.stdout.flush()\n"
        f"time.sleep({sleep_seconds!r})\n"
        f"sys.exit({exit_code!r})\n",
        encoding="utf-8",
    )
    return [sys.executable, str(script)]
