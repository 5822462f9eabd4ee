#!/usr/bin/env python3
"""buildmate command line entry point."""

import argparse
import logging
import subprocess
import sys
from typing import List, Optional

from buildmate.checklist import show_checklist
from buildmate.coaching import CoachingEngine, default_tips
from buildmate.history import LATEST_FILES, show_history, show_latest
from buildmate.pipeline import BuildEventPipeline, build_command
from buildmate.reporting import finish_build
from buildmate.util.color_output import eprint_red, print_plain
from buildmate.util.config import DISPLAY_MODES, BuildMateConfig, load_config, with_overrides
from buildmate.util.exceptions import ProcessSpawnError
from buildmate.util.live_counters import LiveCounters
from buildmate.util.progress_display import create_progress_display


logger = logging.getLogger(__name__)

# Subcommands whose stdout is purely the compiler's event stream
BUILD_COMMANDS = frozenset({"build", "check", "clippy", "doc", "rustc"})
LOCAL_COMMANDS = frozenset({"history", "checklist", "view"})


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="buildmate",
        description="Run cargo with live progress, grouped errors and build coaching",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the live progress display",
    )
    parser.add_argument(
        "--display",
        choices=DISPLAY_MODES,
        default=None,
        help="Progress display style (default from config: rich)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Kill the build after this many seconds (default: no timeout)",
    )
    parser.add_argument(
        "command",
        help="cargo subcommand (build, check, ...) or history/checklist/view",
    )
    parser.add_argument(
        "args",
        nargs=argparse.REMAINDER,
        help="Arguments passed through to the subcommand",
    )
    return parser.parse_args(args)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )


def exit_status(returncode: int) -> int:
    """Shell-style exit status for a child return code; signal deaths map to 128 + signum."""
    if returncode < 0:
        return 128 - returncode
    return returncode


def run_passthrough(config: BuildMateConfig, argv: List[str]) -> int:
    """Run the compiler with inherited stdio and return its exit code."""
    try:
        return exit_status(subprocess.call([config.compiler, *argv]))
    except OSError as e:
        eprint_red(f"Failed to start {config.compiler}: {e}")
        return 1


def run_build(config: BuildMateConfig, argv: List[str]) -> int:
    counters = LiveCounters()
    display = create_progress_display(
        counters, config.display, title=f"{config.compiler} {' '.join(argv)}"
    )
    coach = CoachingEngine(
        tips=default_tips(
            slow_build_seconds=config.slow_build_seconds,
            many_warnings_threshold=config.many_warnings_threshold,
            large_error_threshold=config.large_error_threshold,
        )
    )
    pipeline = BuildEventPipeline(
        command=build_command(config.compiler, argv),
        counters=counters,
        coach=coach,
        display=display,
        timeout=config.timeout,
    )
    try:
        result = pipeline.run()
    except ProcessSpawnError as e:
        eprint_red(f"❌ {e.get_failure_summary()}")
        return 1

    finish_build(result, argv, config)
    return exit_status(result.returncode)


def run_local(config: BuildMateConfig, command: str, args: List[str]) -> int:
    if command == "history":
        show_history(args, config.data_dir)
        return 0
    if command == "checklist":
        show_checklist(config.data_dir)
        return 0
    kind = args[0] if args else "all"
    if not show_latest(kind, config.data_dir):
        eprint_red(
            f"Unknown view '{kind}'. Choose from: {', '.join([*LATEST_FILES, 'all'])}"
        )
        return 2
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = with_overrides(
            load_config(),
            display="none" if args.no_progress else args.display,
            timeout=args.timeout,
        )
    except ValueError as e:
        eprint_red(f"Configuration error: {e}")
        return 2

    if args.command in LOCAL_COMMANDS:
        return run_local(config, args.command, args.args)

    cargo_args = [args.command, *args.args]
    try:
        if args.command in BUILD_COMMANDS:
            return run_build(config, cargo_args)
        return run_passthrough(config, cargo_args)
    except KeyboardInterrupt:
        print_plain("\nInterrupted.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
